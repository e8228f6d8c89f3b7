# src/core/users/repository.py
"""
Account storage: customers, drivers, admins.
"""

from __future__ import annotations

from typing import Any, Optional

import asyncpg

from src.common.constants import AccountKind, DriverStatus
from src.common.errors import DuplicateKey
from src.core.users.models import Credentials, Customer, Driver, DriverCreateDTO
from src.infra.database import DatabaseManager, affected_rows

ACCOUNT_TABLES: dict[AccountKind, str] = {
    AccountKind.CUSTOMER: "customers",
    AccountKind.DRIVER: "drivers",
    AccountKind.ADMIN: "admins",
}

DRIVER_COLUMNS = """
    id, driver_id, name, phone, fcm_token, vehicle_number, vehicle_model,
    driving_license_number, address, balance, status, is_online, verified,
    disabled, created_at
"""


class AccountRepository:
    """Phone/password data shared by every account table."""

    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    async def get_credentials(self, kind: AccountKind, phone: str) -> Optional[Credentials]:
        role_column = "role" if kind is AccountKind.ADMIN else "NULL AS role"
        row = await self._db.fetchrow(
            f"SELECT id, password, disabled, {role_column} FROM {ACCOUNT_TABLES[kind]} WHERE phone = $1",
            phone,
        )
        return Credentials(**dict(row)) if row else None

    async def get_password_hash(self, kind: AccountKind, user_id: int) -> Optional[str]:
        return await self._db.fetchval(
            f"SELECT password FROM {ACCOUNT_TABLES[kind]} WHERE id = $1",
            user_id,
        )

    async def phone_exists(self, kind: AccountKind, phone: str) -> bool:
        return bool(await self._db.fetchval(
            f"SELECT EXISTS(SELECT 1 FROM {ACCOUNT_TABLES[kind]} WHERE phone = $1)",
            phone,
        ))

    async def set_password(self, kind: AccountKind, user_id: int, password_hash: str) -> bool:
        status = await self._db.execute(
            f"UPDATE {ACCOUNT_TABLES[kind]} SET password = $2 WHERE id = $1",
            user_id,
            password_hash,
        )
        return affected_rows(status) == 1

    async def set_fcm_token(self, kind: AccountKind, user_id: int, fcm_token: str) -> None:
        await self._db.execute(
            f"UPDATE {ACCOUNT_TABLES[kind]} SET fcm_token = $2 WHERE id = $1",
            user_id,
            fcm_token,
        )

    async def create_customer(
        self,
        name: str,
        phone: str,
        password_hash: str,
        fcm_token: Optional[str] = None,
        profile_picture_url: Optional[str] = None,
    ) -> int:
        try:
            return await self._db.fetchval(
                """
                INSERT INTO customers (name, phone, password, fcm_token, profile_picture_url)
                VALUES ($1, $2, $3, $4, $5)
                RETURNING id
                """,
                name, phone, password_hash, fcm_token, profile_picture_url,
            )
        except asyncpg.UniqueViolationError:
            raise DuplicateKey("customer already exists", details={"field": "phone"}) from None

    async def create_admin(self, name: str, phone: str, password_hash: str, role: str) -> int:
        try:
            return await self._db.fetchval(
                "INSERT INTO admins (name, phone, password, role) VALUES ($1, $2, $3, $4) RETURNING id",
                name, phone, password_hash, role,
            )
        except asyncpg.UniqueViolationError:
            raise DuplicateKey("account already exists", details={"field": "phone"}) from None


class CustomerRepository:
    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    async def get(self, customer_id: int, conn: Any | None = None) -> Optional[Customer]:
        executor = conn or self._db
        row = await executor.fetchrow(
            "SELECT id, name, phone, fcm_token, profile_picture_url, disabled FROM customers WHERE id = $1",
            customer_id,
        )
        return Customer(**dict(row)) if row else None

    async def lock(self, customer_id: int, conn: Any) -> bool:
        """Row-locks the customer for the rest of the transaction."""
        row = await conn.fetchrow("SELECT id FROM customers WHERE id = $1 FOR UPDATE", customer_id)
        return row is not None

    async def get_fcm_token(self, customer_id: int) -> Optional[str]:
        return await self._db.fetchval("SELECT fcm_token FROM customers WHERE id = $1", customer_id)


class DriverRepository:
    """Driver accounts, availability and wallet balance."""

    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    async def get(self, driver_id: int, conn: Any | None = None) -> Optional[Driver]:
        executor = conn or self._db
        row = await executor.fetchrow(f"SELECT {DRIVER_COLUMNS} FROM drivers WHERE id = $1", driver_id)
        return Driver(**dict(row)) if row else None

    async def get_fcm_token(self, driver_id: int) -> Optional[str]:
        return await self._db.fetchval("SELECT fcm_token FROM drivers WHERE id = $1", driver_id)

    async def code_exists(self, code: str) -> bool:
        return bool(await self._db.fetchval(
            "SELECT EXISTS(SELECT 1 FROM drivers WHERE driver_id = $1)",
            code,
        ))

    async def latest_code(self, prefix: str) -> Optional[str]:
        """Highest business code of the form <prefix>NNN."""
        return await self._db.fetchval(
            """
            SELECT driver_id FROM drivers
            WHERE driver_id ~ $1
            ORDER BY driver_id DESC
            LIMIT 1
            """,
            f"^{prefix}[0-9]{{3}}$",
        )

    async def create(
        self,
        dto: DriverCreateDTO,
        password_hash: str,
        *,
        balance: float,
        verified: bool,
        status: DriverStatus = DriverStatus.ACTIVE,
    ) -> Driver:
        try:
            row = await self._db.fetchrow(
                f"""
                INSERT INTO drivers (
                    driver_id, name, phone, password, vehicle_number, vehicle_model,
                    driving_license_number, address, balance, status, verified, is_online, disabled
                )
                VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, FALSE, FALSE)
                RETURNING {DRIVER_COLUMNS}
                """,
                dto.driver_id,
                dto.name,
                dto.phone,
                password_hash,
                dto.vehicle_number or None,
                dto.vehicle_model,
                dto.driving_license_number,
                dto.address,
                balance,
                status.value,
                verified,
            )
        except asyncpg.UniqueViolationError:
            raise DuplicateKey("Driver ID or phone number already exists") from None
        return Driver(**dict(row))

    async def lock(self, driver_id: int, conn: Any) -> bool:
        """Row-locks the driver for the rest of the transaction."""
        row = await conn.fetchrow("SELECT id FROM drivers WHERE id = $1 FOR UPDATE", driver_id)
        return row is not None

    async def set_status(self, driver_id: int, status: DriverStatus, conn: Any | None = None) -> bool:
        executor = conn or self._db
        result = await executor.execute(
            "UPDATE drivers SET status = $2, updated_at = NOW() WHERE id = $1",
            driver_id,
            status.value,
        )
        return affected_rows(result) == 1

    async def set_online(self, driver_id: int, online: bool, conn: Any | None = None) -> bool:
        """Stores whether the driver holds a live socket connection."""
        executor = conn or self._db
        result = await executor.execute(
            "UPDATE drivers SET is_online = $2, updated_at = NOW() WHERE id = $1",
            driver_id,
            online,
        )
        return affected_rows(result) == 1

    async def claim_for_dispatch(self, driver_id: int, conn: Any) -> bool:
        """
        Marks an available driver busy.

        Returns:
            False when the stored row is no longer active, online and enabled
        """
        result = await conn.execute(
            """
            UPDATE drivers SET status = $2, updated_at = NOW()
            WHERE id = $1 AND status = $3 AND is_online AND NOT disabled
            """,
            driver_id,
            DriverStatus.BUSY.value,
            DriverStatus.ACTIVE.value,
        )
        return affected_rows(result) == 1

    async def adjust_balance(
        self,
        driver_id: int,
        delta: float,
        conn: Any,
        status: DriverStatus | None = None,
    ) -> Optional[float]:
        """
        Adds ``delta`` to the balance atomically (negative to debit).

        Returns:
            New balance, or None for an unknown driver
        """
        if status is None:
            return await conn.fetchval(
                "UPDATE drivers SET balance = balance + $2, updated_at = NOW() WHERE id = $1 RETURNING balance",
                driver_id,
                delta,
            )
        return await conn.fetchval(
            """
            UPDATE drivers SET balance = balance + $2, status = $3, updated_at = NOW()
            WHERE id = $1
            RETURNING balance
            """,
            driver_id,
            delta,
            status.value,
        )
