# src/services/api/routes/transactions.py
"""
Driver wallet routes.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from src.core.billing.service import CashInService
from src.core.users.models import TokenClaims
from src.services.api.auth import require_admin, require_driver
from src.services.api.dependencies import get_cash_in_service
from src.services.api.schemas import (
    AdminCashInRequest,
    CashInResponse,
    DriverCashInRequest,
    ReviewCashInRequest,
)

router = APIRouter(prefix="/transaction", tags=["Transactions"])


@router.post("/driver-cashin", response_model=CashInResponse)
async def driver_cash_in(
    body: DriverCashInRequest,
    claims: TokenClaims = Depends(require_driver),
    service: CashInService = Depends(get_cash_in_service),
):
    result = await service.request_cash_in(claims.user_id, body.payment_method, body.receipt_photo_url)
    return CashInResponse(message="cash in success", transaction_id=result.transaction_id)


@router.post("/update-driver-cashin", response_model=CashInResponse)
async def update_driver_cash_in(
    body: ReviewCashInRequest,
    claims: TokenClaims = Depends(require_admin),
    service: CashInService = Depends(get_cash_in_service),
):
    result = await service.review_cash_in(
        claims.user_id, body.driver_transaction_id, body.amount, body.accepted,
    )
    return CashInResponse(message="update driver cash in success", transaction_id=result.transaction_id)


@router.post("/admin-driver-cashin", response_model=CashInResponse)
async def admin_driver_cash_in(
    body: AdminCashInRequest,
    claims: TokenClaims = Depends(require_admin),
    service: CashInService = Depends(get_cash_in_service),
):
    result = await service.admin_cash_in(
        claims.user_id, body.driver_id, body.amount, body.payment_method, body.receipt_photo_url,
    )
    return CashInResponse(message="admin driver cash in success", transaction_id=result.transaction_id)
