# src/services/api/routes/customers.py
"""
Customer account routes.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from src.common.constants import AccountKind
from src.core.users.models import TokenClaims
from src.core.users.service import AuthService
from src.services.api.auth import require_customer
from src.services.api.dependencies import get_auth_service
from src.services.api.rate_limit import auth_rate_limit
from src.services.api.schemas import (
    CustomerSignupRequest,
    MessageResponse,
    SigninRequest,
    TokenResponse,
    UpdatePasswordRequest,
)

router = APIRouter(prefix="/customer", tags=["Customers"])


@router.post("/signin", response_model=TokenResponse, dependencies=[Depends(auth_rate_limit)])
async def signin(
    body: SigninRequest,
    service: AuthService = Depends(get_auth_service),
):
    return await service.signin(AccountKind.CUSTOMER, body.phone, body.password, body.fcm_token)


@router.post("/signup", response_model=TokenResponse, dependencies=[Depends(auth_rate_limit)])
async def signup(
    body: CustomerSignupRequest,
    service: AuthService = Depends(get_auth_service),
):
    return await service.signup_customer(
        body.name, body.phone, body.password, body.fcm_token, body.profile_picture_url,
    )


@router.post("/update-password", response_model=MessageResponse)
async def update_password(
    body: UpdatePasswordRequest,
    claims: TokenClaims = Depends(require_customer),
    service: AuthService = Depends(get_auth_service),
):
    await service.update_password(
        AccountKind.CUSTOMER, claims.user_id, body.old_password, body.new_password, body.confirm_password,
    )
    return MessageResponse(message="password updated")
