# numbers_erp/core/security.py - Authentication utilities (JWT, password hashing, invite/reset tokens)
from datetime import datetime, timedelta, timezone
from typing import Dict, Any, Optional, Union
import secrets
import hashlib
import hmac
import re

import jwt
from passlib.context import CryptContext
from fastapi import HTTPException, status

from numbers_erp.core.config import settings

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
    bcrypt__ident="2b"
)


class SecurityError(Exception):
    """Custom exception for security-related errors"""
    pass


class TokenManager:
    """Manages JWT access token creation and validation"""

    def __init__(self):
        self.secret_key = settings.JWT_SECRET
        self.algorithm = settings.JWT_ALGORITHM
        self.issuer = settings.JWT_ISSUER
        self.audience = settings.JWT_AUDIENCE
        self.access_token_expire_minutes = settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES

    def create_access_token(
        self,
        subject: Union[str, Any],
        expires_delta: Optional[timedelta] = None,
        additional_claims: Optional[Dict[str, Any]] = None,
    ) -> str:
        """
        Create a JWT access token.

        Args:
            subject: Token subject (the user ID)
            expires_delta: Custom expiration time
            additional_claims: Additional JWT claims (role, workspace_id)

        Returns:
            Encoded JWT token string

        Raises:
            SecurityError: If token creation fails
        """
        try:
            now = datetime.now(timezone.utc)
            expire = now + (expires_delta or timedelta(minutes=self.access_token_expire_minutes))

            payload = {
                "sub": str(subject),
                "iat": now,
                "exp": expire,
                "iss": self.issuer,
                "aud": self.audience,
                "type": "access",
                "jti": secrets.token_hex(16),
            }

            if additional_claims:
                reserved_claims = {"sub", "iat", "exp", "iss", "aud", "type", "jti"}
                for claim in additional_claims:
                    if claim in reserved_claims:
                        raise SecurityError(f"Cannot override reserved JWT claim: {claim}")
                payload.update(additional_claims)

            return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

        except jwt.PyJWTError as e:
            raise SecurityError(f"Failed to create access token: {e}")

    def decode_token(self, token: str, expected_type: str = "access") -> Dict[str, Any]:
        """
        Decode and validate a JWT token.

        Raises:
            HTTPException: If token is invalid or expired
        """
        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                audience=self.audience,
                issuer=self.issuer,
            )
        except jwt.ExpiredSignatureError:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Token has expired",
                headers={"WWW-Authenticate": "Bearer"},
            )
        except jwt.InvalidTokenError as e:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail=f"Invalid token: {e}",
                headers={"WWW-Authenticate": "Bearer"},
            )

        if payload.get("type") != expected_type:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail=f"Invalid token type. Expected {expected_type}",
                headers={"WWW-Authenticate": "Bearer"},
            )

        return payload


class PasswordManager:
    """Manages password hashing, verification, and strength validation"""

    @staticmethod
    def hash_password(password: str) -> str:
        if not password:
            raise SecurityError("Password cannot be empty")
        return pwd_context.hash(password)

    @staticmethod
    def verify_password(plain_password: str, hashed_password: str) -> bool:
        if not plain_password or not hashed_password:
            return False
        try:
            return pwd_context.verify(plain_password, hashed_password)
        except (ValueError, TypeError):
            # Unusable hashes (invited accounts) never verify
            return False

    @staticmethod
    def unusable_password() -> str:
        """Placeholder stored for invited accounts until they set a password"""
        return "!" + secrets.token_hex(16)

    @staticmethod
    def validate_password_strength(password: str) -> Dict[str, Any]:
        """
        Validate password strength with detailed feedback.

        Returns:
            Dictionary with "valid" and a list of "feedback" messages
        """
        if not password:
            return {"valid": False, "feedback": ["Password cannot be empty"]}

        feedback = []
        if len(password) < 8:
            feedback.append("Password must be at least 8 characters long")
        if not re.search(r'[A-Z]', password):
            feedback.append("Password must contain at least one uppercase letter")
        if not re.search(r'[a-z]', password):
            feedback.append("Password must contain at least one lowercase letter")
        if not re.search(r'\d', password):
            feedback.append("Password must contain at least one digit")

        if password.lower() in [
            "password", "123456", "password123", "admin", "letmein",
            "welcome", "monkey", "1234567890", "qwerty", "abc123"
        ]:
            feedback.append("Password is too common")

        return {
            "valid": not feedback,
            "feedback": feedback or ["Password meets all requirements"],
        }


class ResetTokenManager:
    """Manages invitation and password reset tokens"""

    @staticmethod
    def generate_reset_token(length: int = None) -> str:
        """Generate a cryptographically secure URL-safe token"""
        if length is None:
            length = settings.RESET_TOKEN_LENGTH
        return secrets.token_urlsafe(length)

    @staticmethod
    def hash_reset_token(token: str) -> str:
        """Hash a token for storage using HMAC-SHA256 keyed with the JWT secret"""
        if not token:
            raise SecurityError("Reset token cannot be empty")

        return hmac.new(
            settings.JWT_SECRET.encode(),
            token.encode(),
            hashlib.sha256
        ).hexdigest()


token_manager = TokenManager()
password_manager = PasswordManager()
reset_token_manager = ResetTokenManager()


def decode_token(token: str) -> Dict[str, Any]:
    return token_manager.decode_token(token)


__all__ = [
    "SecurityError",
    "token_manager",
    "password_manager",
    "reset_token_manager",
    "decode_token",
]
