# numbers_erp/services/auth_service.py - Authentication business logic
from sqlalchemy.orm import Session
from sqlalchemy import select
from datetime import datetime, timedelta
from typing import Optional, Tuple
import logging

from numbers_erp.core.config import settings
from numbers_erp.core.security import password_manager, reset_token_manager, token_manager
from numbers_erp.models.user import User, Role
from numbers_erp.models.workspace import Workspace
from numbers_erp.models.password_reset import PasswordResetToken
from numbers_erp.services.email_service import EmailTemplates, email_service, password_link

logger = logging.getLogger(__name__)


class AuthService:
    """Service class for authentication operations"""

    def __init__(self, db: Session):
        self.db = db

    def get_user_by_email(self, email: str) -> Optional[User]:
        return self.db.execute(
            select(User).where(User.email == email.lower().strip())
        ).scalar_one_or_none()

    def register_workspace(self, email: str, full_name: str, password: str, workspace_name: str) -> Tuple[User, Workspace]:
        """
        Create a workspace and its first admin account

        Raises:
            ValueError: If the email is taken or the password is weak
        """
        email = email.lower().strip()

        if self.get_user_by_email(email):
            raise ValueError("User with this email already exists")

        strength = password_manager.validate_password_strength(password)
        if not strength["valid"]:
            raise ValueError("; ".join(strength["feedback"]))

        workspace = Workspace(name=workspace_name.strip())
        self.db.add(workspace)
        self.db.flush()

        user = User(
            email=email,
            full_name=full_name.strip(),
            password_hash=password_manager.hash_password(password),
            role=Role.ADMIN.value,
            workspace_id=workspace.id,
            is_active=True,
            is_verified=True,
        )
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)

        logger.info(f"Workspace '{workspace.name}' registered by {email}")
        return user, workspace

    def authenticate_user(self, email: str, password: str) -> Optional[User]:
        """
        Authenticate user with email and password

        Returns:
            User object if authentication successful, None otherwise
        """
        user = self.get_user_by_email(email)

        if not user or not user.is_active:
            return None

        if not password_manager.verify_password(password, user.password_hash):
            return None

        user.last_login = datetime.utcnow()
        self.db.commit()

        logger.info(f"User authenticated: {user.email}")
        return user

    def create_access_token_for_user(self, user: User) -> str:
        claims = {
            "email": user.email,
            "role": user.role,
        }
        if user.workspace_id:
            claims["workspace_id"] = str(user.workspace_id)
        return token_manager.create_access_token(subject=user.id, additional_claims=claims)

    def issue_token(self, user: User, purpose: str, client_ip: str = None) -> str:
        """Store the hash of a new invite/reset token and return the plain token"""
        hours = settings.INVITE_TOKEN_EXPIRE_HOURS if purpose == "invite" else settings.RESET_TOKEN_EXPIRE_HOURS
        plain_token = reset_token_manager.generate_reset_token()

        self.db.add(PasswordResetToken(
            user_id=user.id,
            token=reset_token_manager.hash_reset_token(plain_token),
            purpose=purpose,
            expires_at=datetime.utcnow() + timedelta(hours=hours),
            created_ip=client_ip,
        ))
        return plain_token

    def initiate_password_reset(self, email: str, client_ip: str = None) -> bool:
        """
        Initiate password reset process

        Returns:
            True whether or not the email exists, so accounts cannot be probed
        """
        user = self.get_user_by_email(email)

        if not user or not user.is_active:
            logger.info(f"Password reset attempted for non-existent user: {email}")
            return True

        if user.get_active_reset_tokens_count() >= settings.MAX_RESET_ATTEMPTS:
            logger.warning(f"Too many reset tokens for user: {user.email}")
            return True

        plain_token = self.issue_token(user, "reset", client_ip)
        self.db.commit()

        text, html = EmailTemplates.password_reset(user.full_name, password_link(plain_token, user.email))
        if not email_service.send_email(user.email, "Reset your Numbers ERP password", text, html):
            if settings.is_development:
                logger.info(f"DEV: Reset token for {user.email}: {plain_token}")

        logger.info(f"Password reset initiated for: {user.email}")
        return True

    def reset_password(self, email: str, token: str, new_password: str, client_ip: str = None) -> bool:
        """
        Set a new password using a valid reset or invitation token

        Raises:
            ValueError: If token is invalid or expired, or the password is weak
        """
        user = self.get_user_by_email(email)
        if not user:
            raise ValueError("Invalid reset token")

        reset_token = self.db.execute(
            select(PasswordResetToken).where(
                PasswordResetToken.user_id == user.id,
                PasswordResetToken.token == reset_token_manager.hash_reset_token(token)
            )
        ).scalar_one_or_none()

        if not reset_token or not reset_token.is_valid():
            raise ValueError("Invalid or expired reset token")

        strength = password_manager.validate_password_strength(new_password)
        if not strength["valid"]:
            raise ValueError("; ".join(strength["feedback"]))

        user.password_hash = password_manager.hash_password(new_password)
        # Following an emailed link proves the address
        user.is_verified = True
        reset_token.mark_used(client_ip)

        self.db.commit()

        logger.info(f"Password {'set from invitation' if reset_token.purpose == 'invite' else 'reset'} for: {user.email}")
        return True
