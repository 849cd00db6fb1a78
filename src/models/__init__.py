"""Models package for the employee directory."""

from src.models.base import Base
from src.models.custom_field import CustomField, FieldType
from src.models.employee import EMPLOYEE_FIELDS, Employee
from src.models.tenant import Tenant

__all__ = [
    "Base",
    "CustomField",
    "EMPLOYEE_FIELDS",
    "Employee",
    "FieldType",
    "Tenant",
]
