from enum import Enum


class ActorRole(str, Enum):
    EMPLOYEE = "employee"
    SITE_ADMIN = "site_admin"
    COMPANY_ADMIN = "company_admin"
    VENDOR = "vendor"
    SYSTEM = "system"
