# src/services/api/routes/__init__.py
"""
API routers, mounted under /api/v1.
"""

from fastapi import APIRouter

from src.services.api.routes import admins, customers, drivers, transactions, trips

api_router = APIRouter()
api_router.include_router(customers.router)
api_router.include_router(drivers.router)
api_router.include_router(admins.router)
api_router.include_router(trips.router)
api_router.include_router(transactions.router)

__all__ = ["api_router"]
