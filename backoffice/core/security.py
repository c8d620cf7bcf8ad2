"""
Security utilities: password hashing and bearer token decoding.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from backoffice.config.settings import settings
from backoffice.core.logging import get_logger
from backoffice.services.common.errors import AuthenticationError

logger = get_logger(__name__)

# Password hashing context
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


class PasswordManager:
    """Password hashing and verification"""

    @staticmethod
    def hash_password(password: str) -> str:
        return pwd_context.hash(password)

    @staticmethod
    def verify_password(plain_password: str, hashed_password: str) -> bool:
        try:
            return pwd_context.verify(plain_password, hashed_password)
        except (ValueError, TypeError) as e:
            logger.warning(f"Password verification failed: {e}")
            return False


class TokenManager:
    """JWT helpers. Tokens are issued elsewhere; this side only verifies."""

    @staticmethod
    def create_token(subject: str, expires_delta: Optional[timedelta] = None, **claims: Any) -> str:
        """Encode a signed token for a subject (used by tooling and tests)."""
        now = datetime.now(timezone.utc)
        payload: Dict[str, Any] = {
            "sub": subject,
            "iat": now,
            "exp": now + (expires_delta or timedelta(hours=settings.JWT_EXPIRE_HOURS)),
            **claims,
        }
        return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)

    @staticmethod
    def decode_token(token: str) -> Dict[str, Any]:
        """
        Verify and decode a bearer token.

        Raises:
            AuthenticationError: If the token is expired, malformed or unsigned
        """
        try:
            payload = jwt.decode(
                token,
                settings.JWT_SECRET_KEY,
                algorithms=[settings.JWT_ALGORITHM],
            )
        except ExpiredSignatureError:
            raise AuthenticationError("Token has expired")
        except JWTError as e:
            logger.warning(f"Token verification failed: {e}")
            raise AuthenticationError("Not authorized to access this route")

        if not payload.get("sub"):
            raise AuthenticationError("Not authorized to access this route")
        return payload


hash_password = PasswordManager.hash_password
verify_password = PasswordManager.verify_password
