# src/core/users/service.py
"""
Authentication and account management.
"""

from __future__ import annotations

from typing import Any, Optional

from src.common.constants import AccountKind, AdminRole, TypeMsg, UserRole
from src.common.errors import (
    Conflict,
    DuplicateKey,
    NotFound,
    Unauthorized,
    ValidationError,
)
from src.common.logger import log_debug, log_info
from src.common.validators import validate_driver_code, validate_phone
from src.core.users.models import Driver, DriverCreateDTO
from src.core.users.repository import AccountRepository, DriverRepository
from src.core.users.security import TokenIssuer, hash_password, verify_password
from src.infra.database import DatabaseManager

# Token role for each sign-in table (admins are mapped from their stored role)
KIND_ROLES: dict[AccountKind, UserRole] = {
    AccountKind.CUSTOMER: UserRole.CUSTOMER,
    AccountKind.DRIVER: UserRole.DRIVER,
}


def admin_token_role(admin_role: AdminRole) -> UserRole:
    """Stored ``admin`` grants ``super_admin``; everything else is ``staff``."""
    return UserRole.SUPER_ADMIN if admin_role is AdminRole.ADMIN else UserRole.STAFF


def _require(**fields: Any) -> None:
    missing = [name for name, value in fields.items() if value in (None, "")]
    if missing:
        raise ValidationError("missing required fields", details={"fields": missing})


class AuthService:
    """
    Sign-in, sign-up and password management for customers, drivers and admins.
    """

    def __init__(
        self,
        db: DatabaseManager,
        tokens: TokenIssuer,
        driver_code_prefix: str | None = None,
        opening_balance: float | None = None,
        password_length: int | None = None,
    ) -> None:
        """
        Args:
            db: Database manager
            tokens: Token issuer
            driver_code_prefix: Business driver id prefix (config when None)
            opening_balance: Balance of admin-created drivers (config when None)
            password_length: Required length of admin-set driver passwords
        """
        if driver_code_prefix is None or opening_balance is None or password_length is None:
            from src.config import settings
            driver_code_prefix = driver_code_prefix or settings.drivers.DRIVER_CODE_PREFIX
            opening_balance = opening_balance if opening_balance is not None else settings.drivers.DRIVER_OPENING_BALANCE
            password_length = password_length or settings.drivers.DRIVER_PASSWORD_LENGTH

        self._accounts = AccountRepository(db)
        self._drivers = DriverRepository(db)
        self._tokens = tokens
        self._prefix = driver_code_prefix
        self._opening_balance = opening_balance
        self._password_length = password_length

    # =========================================================================
    # SIGN-IN
    # =========================================================================

    async def signin(
        self,
        kind: AccountKind,
        phone: str,
        password: str,
        fcm_token: Optional[str] = None,
    ) -> dict[str, Any]:
        """
        Customer or driver sign-in.

        Returns:
            ``{"token": ...}`` (drivers also get ``disabled``)

        Raises:
            NotFound: unknown phone
            Unauthorized: disabled account or wrong password
        """
        phone = validate_phone(phone)
        _require(password=password)

        creds = await self._accounts.get_credentials(kind, phone)
        if creds is None:
            raise NotFound("Account does not exist")
        if creds.disabled:
            raise Unauthorized("Account is disabled")
        if not verify_password(password, creds.password):
            raise Unauthorized("Invalid password")

        if fcm_token:
            await self._accounts.set_fcm_token(kind, creds.id, fcm_token)

        await log_debug(f"{kind.value} {creds.id} signed in")

        result: dict[str, Any] = {"token": self._tokens.issue(creds.id, KIND_ROLES[kind])}
        if kind is AccountKind.DRIVER:
            result["disabled"] = creds.disabled
        return result

    async def admin_signin(self, phone: str, password: str) -> dict[str, Any]:
        _require(phone=phone, password=password)

        creds = await self._accounts.get_credentials(AccountKind.ADMIN, phone)
        if creds is None:
            raise NotFound("Account does not exist")
        if creds.disabled:
            raise Unauthorized("Account is disabled")
        if not verify_password(password, creds.password):
            raise Unauthorized("Invalid password")

        admin_role = AdminRole(creds.role or AdminRole.STAFF.value)
        token = self._tokens.issue(creds.id, admin_token_role(admin_role), admin_role)
        return {"token": token}

    # =========================================================================
    # SIGN-UP
    # =========================================================================

    async def signup_customer(
        self,
        name: str,
        phone: str,
        password: str,
        fcm_token: Optional[str] = None,
        profile_picture_url: Optional[str] = None,
    ) -> dict[str, Any]:
        _require(name=name, password=password)
        phone = validate_phone(phone)

        if await self._accounts.phone_exists(AccountKind.CUSTOMER, phone):
            raise DuplicateKey("customer already exists", details={"field": "phone"})

        customer_id = await self._accounts.create_customer(
            name, phone, hash_password(password), fcm_token, profile_picture_url,
        )
        await log_info(f"Customer {customer_id} registered", type_msg=TypeMsg.INFO)
        return {"token": self._tokens.issue(customer_id, UserRole.CUSTOMER)}

    async def next_driver_code(self) -> str:
        """Code following the highest existing one (``<prefix>001`` when none)."""
        latest = await self._drivers.latest_code(self._prefix)
        number = int(latest[len(self._prefix):]) + 1 if latest else 1
        if number > 999:
            raise Conflict(f"Driver ID range {self._prefix}001-{self._prefix}999 is exhausted")
        return f"{self._prefix}{number:03d}"

    async def signup_driver(self, name: str, phone: str, password: str) -> dict[str, Any]:
        """Self-registered drivers wait for admin verification."""
        _require(name=name, password=password)
        phone = validate_phone(phone)

        if await self._accounts.phone_exists(AccountKind.DRIVER, phone):
            raise DuplicateKey("Account already exists", details={"field": "phone"})

        dto = DriverCreateDTO(
            driver_id=await self.next_driver_code(),
            name=name,
            phone=phone,
            vehicle_number="",
            password=password,
        )
        driver = await self._drivers.create(dto, hash_password(password), balance=0, verified=False)
        await log_info(f"Driver {driver.driver_id} registered, awaiting verification", type_msg=TypeMsg.INFO)
        return {"message": "Account created. Please wait for verification", "driver_id": driver.driver_id}

    async def admin_signup(self, name: str, phone: str, password: str) -> dict[str, Any]:
        """New admins always start as staff."""
        _require(name=name, phone=phone, password=password)

        if await self._accounts.phone_exists(AccountKind.ADMIN, phone):
            raise DuplicateKey("account already exists", details={"field": "phone"})

        admin_id = await self._accounts.create_admin(name, phone, hash_password(password), AdminRole.STAFF.value)
        return {"token": self._tokens.issue(admin_id, UserRole.STAFF, AdminRole.STAFF)}

    async def create_driver(self, dto: DriverCreateDTO) -> Driver:
        """
        Admin-created driver account.

        Verified only when licence, vehicle model, street and city are all
        given; starts with the configured opening balance.

        Raises:
            ValidationError: bad code, password length or phone
            DuplicateKey: driver id or phone already used
        """
        _require(
            driver_id=dto.driver_id,
            name=dto.name,
            phone=dto.phone,
            vehicle_number=dto.vehicle_number,
            password=dto.password,
        )
        validate_driver_code(dto.driver_id, self._prefix)

        if await self._drivers.code_exists(dto.driver_id):
            raise DuplicateKey(f"Driver ID {dto.driver_id} is already in use", details={"field": "driver_id"})

        if len(dto.password) != self._password_length:
            raise ValidationError(
                f"Password must be exactly {self._password_length} characters",
                details={"field": "password"},
            )
        validate_phone(dto.phone)

        if await self._accounts.phone_exists(AccountKind.DRIVER, dto.phone):
            raise DuplicateKey("Driver with this phone number already exists", details={"field": "phone"})

        driver = await self._drivers.create(
            dto,
            hash_password(dto.password),
            balance=self._opening_balance,
            verified=dto.has_full_profile,
        )
        await log_info(f"Driver {driver.driver_id} created (verified={driver.verified})", type_msg=TypeMsg.INFO)
        return driver

    # =========================================================================
    # PASSWORDS
    # =========================================================================

    async def update_password(
        self,
        kind: AccountKind,
        user_id: int,
        old_password: str,
        new_password: str,
        confirm_password: str,
    ) -> None:
        """
        Raises:
            ValidationError: confirmation mismatch
            Unauthorized: wrong old password
        """
        _require(old_password=old_password, new_password=new_password, confirm_password=confirm_password)
        if new_password != confirm_password:
            raise ValidationError("confirm password doesn't match")

        current = await self._accounts.get_password_hash(kind, user_id)
        if current is None:
            raise NotFound("Account does not exist")
        if not verify_password(old_password, current):
            raise Unauthorized("invalid old password")

        await self._accounts.set_password(kind, user_id, hash_password(new_password))

    async def update_user_password(self, user_id: int, new_password: str, confirm_password: str) -> None:
        """Super-admin reset of a customer password."""
        _require(user_id=user_id, new_password=new_password, confirm_password=confirm_password)
        if new_password != confirm_password:
            raise ValidationError("confirm password doesn't match")

        if not await self._accounts.set_password(AccountKind.CUSTOMER, user_id, hash_password(new_password)):
            raise NotFound("Customer not found")
