# src/core/users/security.py
"""
Password hashing and access tokens.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from jose import JWTError, jwt
from passlib.context import CryptContext
from pydantic import ValidationError as PydanticValidationError

from src.common.constants import AdminRole, UserRole
from src.common.errors import ConfigError, InvalidToken
from src.core.users.models import TokenClaims

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    try:
        return pwd_context.verify(plain, hashed)
    except ValueError:
        # Malformed hash in the database
        return False


class TokenIssuer:
    """Signs and verifies HS256 bearer tokens."""

    def __init__(
        self,
        secret: str | None = None,
        algorithm: str = "HS256",
        expire_days: int = 30,
    ) -> None:
        if secret is None:
            from src.config import settings
            secret = settings.auth.JWT_SECRET
            algorithm = settings.auth.JWT_ALGORITHM
            expire_days = settings.auth.JWT_EXPIRE_DAYS

        self._secret = secret
        self._algorithm = algorithm
        self._expire_days = expire_days

    def _require_secret(self) -> str:
        if not self._secret:
            raise ConfigError("JWT_SECRET is not configured")
        return self._secret

    def issue(
        self,
        user_id: int,
        role: UserRole,
        admin_role: Optional[AdminRole] = None,
    ) -> str:
        """
        Args:
            user_id: Account primary key
            role: Token role
            admin_role: Stored admin role (admins only)

        Returns:
            Encoded JWT
        """
        claims: dict[str, Any] = {
            "user_id": user_id,
            "role": role.value,
            "exp": datetime.now(timezone.utc) + timedelta(days=self._expire_days),
        }
        if admin_role is not None:
            claims["admin_role"] = admin_role.value
        return jwt.encode(claims, self._require_secret(), algorithm=self._algorithm)

    def verify(self, token: str) -> TokenClaims:
        """
        Raises:
            InvalidToken: bad signature, expired or malformed claims
        """
        try:
            payload = jwt.decode(token, self._require_secret(), algorithms=[self._algorithm])
            return TokenClaims(
                user_id=payload["user_id"],
                role=payload["role"],
                admin_role=payload.get("admin_role"),
            )
        except (JWTError, KeyError, PydanticValidationError):
            raise InvalidToken() from None
