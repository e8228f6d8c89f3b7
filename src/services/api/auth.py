# src/services/api/auth.py
"""
Bearer token authentication and role checks.
"""

from __future__ import annotations

from typing import Callable, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from src.common.constants import UserRole
from src.common.errors import Forbidden, Unauthorized
from src.core.users.models import TokenClaims
from src.core.users.security import TokenIssuer
from src.services.api.dependencies import get_token_issuer

bearer_scheme = HTTPBearer(auto_error=False)


async def current_claims(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    tokens: TokenIssuer = Depends(get_token_issuer),
) -> TokenClaims:
    """
    Raises:
        Unauthorized: no bearer token
        InvalidToken: bad signature or expired
    """
    if credentials is None or not credentials.credentials:
        raise Unauthorized("Authorization token is required")
    return tokens.verify(credentials.credentials)


def require_roles(*roles: UserRole) -> Callable:
    async def dependency(claims: TokenClaims = Depends(current_claims)) -> TokenClaims:
        if claims.role not in roles:
            raise Forbidden("You do not have permission to perform this action")
        return claims

    return dependency


require_customer = require_roles(UserRole.CUSTOMER)
require_driver = require_roles(UserRole.DRIVER)
require_admin = require_roles(UserRole.SUPER_ADMIN, UserRole.STAFF)
require_super_admin = require_roles(UserRole.SUPER_ADMIN)
