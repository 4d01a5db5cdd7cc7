from enum import Enum


class ApprovalStage(str, Enum):
    LOCATION_APPROVAL = "LOCATION_APPROVAL"
    COMPANY_APPROVAL = "COMPANY_APPROVAL"


class ApprovalAction(str, Enum):
    APPROVE = "APPROVE"
    REJECT = "REJECT"


class RejectionReasonCode(str, Enum):
    INCOMPLETE_INFORMATION = "INCOMPLETE_INFORMATION"
    INVALID_DATA = "INVALID_DATA"
    DUPLICATE_REQUEST = "DUPLICATE_REQUEST"
    POLICY_VIOLATION = "POLICY_VIOLATION"
    BUDGET_EXCEEDED = "BUDGET_EXCEEDED"
    ELIGIBILITY_EXHAUSTED = "ELIGIBILITY_EXHAUSTED"
    INVALID_QUANTITY = "INVALID_QUANTITY"
    PRODUCT_UNAVAILABLE = "PRODUCT_UNAVAILABLE"
    EMPLOYEE_NOT_ELIGIBLE = "EMPLOYEE_NOT_ELIGIBLE"
    OTHER = "OTHER"
