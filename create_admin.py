#!/usr/bin/env python3
# create_admin.py
"""
Creates an admin account.

Usage:
    python create_admin.py --phone 0987654321 --name "Admin User" --password secret --role admin
"""

from __future__ import annotations

import argparse
import asyncio

from src.common.constants import AccountKind, AdminRole
from src.common.errors import AppError, DuplicateKey
from src.common.logger import setup_logging
from src.config import settings
from src.core.users.repository import AccountRepository
from src.core.users.security import hash_password
from src.infra.database import get_db


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create an admin account")
    parser.add_argument("--phone", required=True)
    parser.add_argument("--name", default="Admin User")
    parser.add_argument("--password", required=True)
    parser.add_argument("--role", choices=[role.value for role in AdminRole], default=AdminRole.ADMIN.value)
    return parser.parse_args(argv)


async def create_admin(phone: str, name: str, password: str, role: str) -> int:
    """
    Returns:
        New admin id

    Raises:
        DuplicateKey: the phone is already used by an admin
    """
    db = get_db()
    await db.connect(dsn=settings.database.dsn, min_size=1, max_size=1)
    try:
        accounts = AccountRepository(db)
        if await accounts.phone_exists(AccountKind.ADMIN, phone):
            raise DuplicateKey(f"Admin with phone {phone} already exists")
        return await accounts.create_admin(name, phone, hash_password(password), role)
    finally:
        await db.disconnect()


def main() -> int:
    args = parse_args()
    setup_logging()
    try:
        admin_id = asyncio.run(create_admin(args.phone, args.name, args.password, args.role))
    except AppError as e:
        print(f"Error: {e.message}")
        return 1
    print(f"Admin {admin_id} created: {args.phone} ({args.role})")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
