# numbers_erp/models/__init__.py - Import all models so SQLAlchemy can discover them

from numbers_erp.models.base import Base

from numbers_erp.models.workspace import Workspace
from numbers_erp.models.user import User, Role
from numbers_erp.models.password_reset import PasswordResetToken
from numbers_erp.models.parent import Parent
from numbers_erp.models.student import Student
from numbers_erp.models.employee import Employee
from numbers_erp.models.service import Service, Location
from numbers_erp.models.lesson import Lesson
from numbers_erp.models.invoice import Invoice, InvoiceLineItem

__all__ = [
    "Base",
    "Workspace",
    "User",
    "Role",
    "PasswordResetToken",
    "Parent",
    "Student",
    "Employee",
    "Service",
    "Location",
    "Lesson",
    "Invoice",
    "InvoiceLineItem",
]
