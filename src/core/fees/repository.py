# src/core/fees/repository.py
"""
Fee configuration storage.
"""

from __future__ import annotations

from typing import Any

from src.common.errors import ConfigMissing
from src.core.fees.calculator import FeeConfig, TimeFeeWindow
from src.infra.database import DatabaseManager


class FeeConfigRepository:
    """Reads the singleton fee configuration and its time windows."""

    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    async def get_config(self, conn: Any | None = None) -> FeeConfig:
        """
        Loads the first fee_configs row.

        Raises:
            ConfigMissing: no configuration row exists
        """
        query = """
            SELECT id, initial_fee, distance_fee_per_km, waiting_fee_per_minute,
                   free_waiting_minute, commission_rate, commission_rate_type,
                   platform_fee, insurance_fee
            FROM fee_configs
            ORDER BY id
            LIMIT 1
        """
        executor = conn or self._db
        row = await executor.fetchrow(query)
        if row is None:
            raise ConfigMissing("Fee configuration not found")
        return FeeConfig(**dict(row))

    async def get_time_windows(self, fee_config_id: int, conn: Any | None = None) -> list[TimeFeeWindow]:
        executor = conn or self._db
        rows = await executor.fetch(
            """
            SELECT start_time, end_time, fee AS fee_delta
            FROM time_based_fee
            WHERE fee_config_id = $1
            ORDER BY start_time
            """,
            fee_config_id,
        )
        return [TimeFeeWindow(**dict(row)) for row in rows]

    async def load(self, conn: Any | None = None) -> tuple[FeeConfig, list[TimeFeeWindow]]:
        """Config plus its windows."""
        config = await self.get_config(conn)
        windows = await self.get_time_windows(config.id, conn) if config.id is not None else []
        return config, windows
