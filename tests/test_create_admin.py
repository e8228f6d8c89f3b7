# tests/test_create_admin.py
"""
Tests for the admin bootstrap script.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

import create_admin
from src.common.constants import AccountKind
from src.common.errors import DuplicateKey
from src.core.users.security import verify_password


@pytest.fixture
def db() -> MagicMock:
    db = MagicMock()
    db.connect = AsyncMock()
    db.disconnect = AsyncMock()
    return db


@pytest.fixture
def accounts() -> MagicMock:
    accounts = MagicMock()
    accounts.phone_exists = AsyncMock(return_value=False)
    accounts.create_admin = AsyncMock(return_value=4)
    return accounts


class TestCreateAdmin:

    def test_role_defaults_to_admin(self) -> None:
        args = create_admin.parse_args(["--phone", "0987654321", "--password", "secret"])

        assert args.role == "admin"
        assert args.name == "Admin User"

    def test_unknown_role_rejected(self) -> None:
        with pytest.raises(SystemExit):
            create_admin.parse_args(["--phone", "0987654321", "--password", "secret", "--role", "root"])

    @pytest.mark.asyncio
    async def test_creates_with_hashed_password(self, db: MagicMock, accounts: MagicMock) -> None:
        with (
            patch("create_admin.get_db", return_value=db),
            patch("create_admin.AccountRepository", return_value=accounts),
        ):
            admin_id = await create_admin.create_admin("0987654321", "Admin", "secret", "staff")

        assert admin_id == 4
        name, phone, password_hash, role = accounts.create_admin.await_args.args
        assert (name, phone, role) == ("Admin", "0987654321", "staff")
        assert verify_password("secret", password_hash)
        db.disconnect.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_duplicate_phone(self, db: MagicMock, accounts: MagicMock) -> None:
        accounts.phone_exists.return_value = True

        with (
            patch("create_admin.get_db", return_value=db),
            patch("create_admin.AccountRepository", return_value=accounts),
        ):
            with pytest.raises(DuplicateKey):
                await create_admin.create_admin("0987654321", "Admin", "secret", "admin")

        accounts.phone_exists.assert_awaited_once_with(AccountKind.ADMIN, "0987654321")
        accounts.create_admin.assert_not_awaited()
        db.disconnect.assert_awaited_once()
