from enum import Enum


class AuditAction(str, Enum):
    STATUS_UPDATE = "STATUS_UPDATE"
    STATUS_SYNC = "STATUS_SYNC"
    STATUS_REPAIR = "STATUS_REPAIR"
