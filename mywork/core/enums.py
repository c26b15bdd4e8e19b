from enum import Enum


class UserRole(str, Enum):
    USER = "user"
    ADMIN = "admin"


class JobStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class LineItemStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


class AlertSeverity(str, Enum):
    NORMAL = "normal"
    URGENT = "urgent"
    NON_URGENT = "non-urgent"


class InviteStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"


class DurationRequestStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
