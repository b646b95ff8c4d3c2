"""String enums shared by the ORM models and the API schemas."""

from enum import Enum


class AssignmentMode(str, Enum):
    COLD_CALLING = "cold_calling"
    TARGETED = "targeted"


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class TaskType(str, Enum):
    CALL = "call"
    FOLLOW_UP = "follow_up"
    MEETING = "meeting"
    OTHER = "other"


class TaskStatus(str, Enum):
    """Every value ``call_status`` may hold.

    Work-item values and lead-qualification values share the column; see
    ``leadengine.services.lifecycle.STATUS_BUCKETS`` for how each one counts.
    """

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    CALLED = "called"
    INTERESTED = "interested"
    NOT_INTERESTED = "not_interested"
    CALLBACK = "callback"
    CONVERTED = "converted"


class WorkBucket(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
