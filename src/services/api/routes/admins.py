# src/services/api/routes/admins.py
"""
Admin routes: accounts and driver onboarding.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from src.common.constants import AccountKind
from src.core.users.models import DriverCreateDTO, TokenClaims
from src.core.users.service import AuthService
from src.services.api.auth import require_admin, require_super_admin
from src.services.api.dependencies import get_auth_service
from src.services.api.schemas import (
    AdminSigninRequest,
    AdminSignupRequest,
    CreateDriverRequest,
    MessageResponse,
    TokenResponse,
    UpdatePasswordRequest,
    UpdateUserPasswordRequest,
)

router = APIRouter(prefix="/admin", tags=["Admins"])


@router.post("/signin", response_model=TokenResponse)
async def signin(
    body: AdminSigninRequest,
    service: AuthService = Depends(get_auth_service),
):
    return await service.admin_signin(body.phone, body.password)


@router.post("/signup", response_model=TokenResponse)
async def signup(
    body: AdminSignupRequest,
    service: AuthService = Depends(get_auth_service),
):
    return await service.admin_signup(body.name, body.phone, body.password)


@router.post("/update-password", response_model=MessageResponse)
async def update_password(
    body: UpdatePasswordRequest,
    claims: TokenClaims = Depends(require_admin),
    service: AuthService = Depends(get_auth_service),
):
    await service.update_password(
        AccountKind.ADMIN, claims.user_id, body.old_password, body.new_password, body.confirm_password,
    )
    return MessageResponse(message="password updated")


@router.post("/update-user-password", response_model=MessageResponse)
async def update_user_password(
    body: UpdateUserPasswordRequest,
    claims: TokenClaims = Depends(require_super_admin),
    service: AuthService = Depends(get_auth_service),
):
    await service.update_user_password(body.user_id, body.new_password, body.confirm_password)
    return MessageResponse(message="user password updated")


@router.post("/create-driver")
async def create_driver(
    body: CreateDriverRequest,
    claims: TokenClaims = Depends(require_admin),
    service: AuthService = Depends(get_auth_service),
) -> dict[str, Any]:
    driver = await service.create_driver(DriverCreateDTO(
        driver_id=body.driver_id or "",
        name=body.name or "",
        phone=body.phone or "",
        vehicle_number=body.vehicle_number or "",
        password=body.password or "",
        driving_license_number=body.driving_license_number,
        vehicle_model=body.vehicle_model,
        address_street=body.street,
        address_city=body.city,
    ))
    return {
        "message": "Driver created successfully",
        "driver": {
            "id": driver.id,
            "driver_id": driver.driver_id,
            "name": driver.name,
            "phone": driver.phone,
            "vehicle_number": driver.vehicle_number,
            "verified": driver.verified,
            "balance": driver.balance,
        },
    }
