# src/core/users/models.py
"""
Account models.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from src.common.constants import AdminRole, DriverStatus, UserRole


class Customer(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    phone: str
    fcm_token: Optional[str] = None
    profile_picture_url: Optional[str] = None
    disabled: bool = False


class Driver(BaseModel):
    """Driver account with wallet balance."""

    model_config = ConfigDict(from_attributes=True)

    id: int = Field(..., description="Primary key")
    driver_id: str = Field(..., description="Business-facing code, e.g. 7B001")
    name: str
    phone: str
    fcm_token: Optional[str] = None
    vehicle_number: Optional[str] = None
    vehicle_model: Optional[str] = None
    driving_license_number: Optional[str] = None
    address: Optional[str] = None
    balance: float = 0
    status: DriverStatus = DriverStatus.ACTIVE
    is_online: bool = False
    verified: bool = False
    disabled: bool = False
    created_at: Optional[datetime] = None


class Admin(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    phone: str
    role: AdminRole = AdminRole.STAFF
    disabled: bool = False


class Credentials(BaseModel):
    """Row used to check a sign-in."""

    id: int
    password: str
    disabled: bool = False
    role: Optional[str] = None


class TokenClaims(BaseModel):
    """Identity carried by an access token."""

    user_id: int
    role: UserRole
    admin_role: Optional[AdminRole] = None


class DriverCreateDTO(BaseModel):
    """Driver account created by an admin."""

    driver_id: str
    name: str
    phone: str
    vehicle_number: str
    password: str
    driving_license_number: Optional[str] = None
    vehicle_model: Optional[str] = None
    address_street: Optional[str] = None
    address_city: Optional[str] = None

    @property
    def address(self) -> Optional[str]:
        parts = [part for part in (self.address_street, self.address_city) if part]
        return ", ".join(parts) if parts else None

    @property
    def has_full_profile(self) -> bool:
        """Licence, vehicle model and full address are all present."""
        return all((self.driving_license_number, self.vehicle_model, self.address_street, self.address_city))
