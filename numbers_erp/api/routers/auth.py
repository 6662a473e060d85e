# numbers_erp/api/routers/auth.py - Registration, login and password reset
from fastapi import APIRouter, Depends, HTTPException, status, Request
from sqlalchemy.orm import Session
from typing import Dict, Any
import logging

from numbers_erp.core.db import get_db
from numbers_erp.api.deps.auth import get_current_user
from numbers_erp.services.auth_service import AuthService
from numbers_erp.schemas.auth import (
    RegisterIn,
    LoginIn,
    LoginOut,
    MeOut,
    ForgotPasswordIn,
    ForgotPasswordOut,
    ResetPasswordIn,
    ResetPasswordOut
)

logger = logging.getLogger(__name__)
router = APIRouter()


def _client_ip(request: Request) -> str | None:
    return request.client.host if request.client else None


@router.post("/register", response_model=LoginOut, status_code=status.HTTP_201_CREATED)
async def register(
    user_data: RegisterIn,
    db: Session = Depends(get_db)
):
    """Register a new workspace and its admin account"""
    service = AuthService(db)

    if service.get_user_by_email(user_data.email):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="User with this email already exists"
        )

    try:
        user, workspace = service.register_workspace(
            email=user_data.email,
            full_name=user_data.full_name,
            password=user_data.password,
            workspace_name=user_data.workspace_name,
        )
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return LoginOut(
        access_token=service.create_access_token_for_user(user),
        role=user.role,
        workspace_id=str(workspace.id),
    )


@router.post("/login", response_model=LoginOut)
async def login(
    credentials: LoginIn,
    db: Session = Depends(get_db)
):
    """Authenticate user and return access token"""
    service = AuthService(db)
    user = service.authenticate_user(credentials.email, credentials.password)

    if not user:
        logger.warning(f"Failed login attempt for {credentials.email}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return LoginOut(
        access_token=service.create_access_token_for_user(user),
        role=user.role,
        workspace_id=str(user.workspace_id) if user.workspace_id else None,
    )


@router.get("/me", response_model=MeOut)
async def me(ctx: Dict[str, Any] = Depends(get_current_user)):
    return ctx["user"]


@router.post("/forgot-password", response_model=ForgotPasswordOut)
async def forgot_password(
    payload: ForgotPasswordIn,
    request: Request,
    db: Session = Depends(get_db)
):
    """Always answers the same way so callers cannot tell which emails exist"""
    AuthService(db).initiate_password_reset(payload.email, client_ip=_client_ip(request))
    return ForgotPasswordOut(
        message="If an account with this email exists, you will receive password reset instructions."
    )


@router.post("/reset-password", response_model=ResetPasswordOut)
async def reset_password(
    payload: ResetPasswordIn,
    request: Request,
    db: Session = Depends(get_db)
):
    """Set a password from a reset link or an invitation link"""
    try:
        AuthService(db).reset_password(
            email=payload.email,
            token=payload.token,
            new_password=payload.new_password,
            client_ip=_client_ip(request),
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return ResetPasswordOut(message="Password has been updated. You can now sign in.", success=True)
