# src/services/api/routes/drivers.py
"""
Driver account routes.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from src.common.constants import AccountKind
from src.core.users.models import TokenClaims
from src.core.users.service import AuthService
from src.services.api.auth import require_driver
from src.services.api.dependencies import get_auth_service
from src.services.api.rate_limit import auth_rate_limit
from src.services.api.schemas import (
    DriverSignupRequest,
    DriverTokenResponse,
    MessageResponse,
    SigninRequest,
    UpdatePasswordRequest,
)

router = APIRouter(prefix="/driver", tags=["Drivers"])


@router.post("/signin", response_model=DriverTokenResponse, dependencies=[Depends(auth_rate_limit)])
async def signin(
    body: SigninRequest,
    service: AuthService = Depends(get_auth_service),
):
    return await service.signin(AccountKind.DRIVER, body.phone, body.password, body.fcm_token)


@router.post("/signup", dependencies=[Depends(auth_rate_limit)])
async def signup(
    body: DriverSignupRequest,
    service: AuthService = Depends(get_auth_service),
) -> dict[str, Any]:
    return await service.signup_driver(body.name, body.phone, body.password)


@router.post("/update-password", response_model=MessageResponse)
async def update_password(
    body: UpdatePasswordRequest,
    claims: TokenClaims = Depends(require_driver),
    service: AuthService = Depends(get_auth_service),
):
    await service.update_password(
        AccountKind.DRIVER, claims.user_id, body.old_password, body.new_password, body.confirm_password,
    )
    return MessageResponse(message="password updated")
