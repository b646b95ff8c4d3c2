"""ORM model exports for convenient imports elsewhere in the app."""

from leadengine.models.audit_log import AuditLog
from leadengine.models.base import Base
from leadengine.models.employee import Employee
from leadengine.models.phone_batch import PhoneNumberBatch, PhoneTask

__all__ = [
    "AuditLog",
    "Base",
    "Employee",
    "PhoneNumberBatch",
    "PhoneTask",
]
