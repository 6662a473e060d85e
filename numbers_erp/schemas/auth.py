# numbers_erp/schemas/auth.py - Authentication, invitation and password reset schemas
from pydantic import BaseModel, EmailStr, validator
from uuid import UUID


class RegisterIn(BaseModel):
    """Creates a workspace and its first admin"""
    email: EmailStr
    full_name: str
    password: str
    workspace_name: str

    @validator("full_name", "workspace_name")
    def validate_not_blank(cls, v):
        if not v or not v.strip():
            raise ValueError("Field cannot be empty")
        return v.strip()


class LoginIn(BaseModel):
    email: str
    password: str


class LoginOut(BaseModel):
    access_token: str
    token_type: str = "bearer"
    role: str
    workspace_id: str | None = None


class MeOut(BaseModel):
    id: UUID
    email: str
    full_name: str
    role: str
    workspace_id: UUID | None
    student_id: UUID | None
    parent_id: UUID | None
    employee_id: UUID | None
    is_verified: bool

    class Config:
        from_attributes = True


class ForgotPasswordIn(BaseModel):
    email: EmailStr

    class Config:
        json_schema_extra = {
            "example": {
                "email": "user@example.com"
            }
        }


class ForgotPasswordOut(BaseModel):
    message: str


class ResetPasswordIn(BaseModel):
    """Sets a new password from an emailed reset or invitation link"""
    token: str
    email: EmailStr
    new_password: str

    @validator("new_password")
    def validate_password(cls, v):
        if len(v) < 8:
            raise ValueError("Password must be at least 8 characters long")
        return v

    class Config:
        json_schema_extra = {
            "example": {
                "token": "abc123def456",
                "email": "user@example.com",
                "new_password": "NewSecurePassword123"
            }
        }


class ResetPasswordOut(BaseModel):
    message: str
    success: bool
