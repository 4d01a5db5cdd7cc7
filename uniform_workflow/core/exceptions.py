from fastapi import HTTPException
from uniform_workflow.constants.error_codes import ErrorCode


class AppException(HTTPException):
    def __init__(
        self,
        status_code: int,
        message: str,
        error_code: ErrorCode,
        details: dict | None = None,
    ):
        super().__init__(status_code=status_code, detail=message)
        self.error_code = error_code
        self.details = details


class WorkflowChainError(AppException):
    """A dependent-status cascade stopped part way and was rolled back."""

    def __init__(self, step: str, message: str, details: dict | None = None):
        super().__init__(
            409,
            message,
            ErrorCode.CHAIN_INCONSISTENT,
            {"failed_step": step, **(details or {})},
        )
        self.step = step


class StatusConflictError(AppException):
    """Conditional status write matched no row: the record moved underneath us."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(409, message, ErrorCode.STATUS_CONFLICT, details)
