# numbers_erp/schemas/user.py
from pydantic import BaseModel
from typing import Optional
from uuid import UUID


class InviteUserIn(BaseModel):
    """
    Fields are optional so a missing one is reported in the
    {success, error} envelope instead of a validation error.
    """
    email: Optional[str] = None
    role: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    workspace_id: Optional[UUID] = None
    student_id: Optional[UUID] = None
    parent_id: Optional[UUID] = None
    employee_id: Optional[UUID] = None


class UserOut(BaseModel):
    id: UUID
    email: str
    full_name: str
    role: str
    workspace_id: Optional[UUID]
    student_id: Optional[UUID]
    parent_id: Optional[UUID]
    employee_id: Optional[UUID]

    class Config:
        from_attributes = True
