# src/core/users/__init__.py
"""
Accounts and authentication.
"""

from src.core.users.models import Admin, Customer, Driver, DriverCreateDTO, TokenClaims
from src.core.users.repository import AccountRepository, CustomerRepository, DriverRepository
from src.core.users.security import TokenIssuer, hash_password, verify_password
from src.core.users.service import AuthService

__all__ = [
    "Admin",
    "Customer",
    "Driver",
    "DriverCreateDTO",
    "TokenClaims",
    "AccountRepository",
    "CustomerRepository",
    "DriverRepository",
    "TokenIssuer",
    "hash_password",
    "verify_password",
    "AuthService",
]
