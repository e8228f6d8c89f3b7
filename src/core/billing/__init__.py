# src/core/billing/__init__.py
"""
Driver wallet: commission ledger and cash-in top-ups.
"""

from src.core.billing.repository import TransactionRepository, generate_transaction_number
from src.core.billing.service import CashInResult, CashInService

__all__ = [
    "TransactionRepository",
    "generate_transaction_number",
    "CashInResult",
    "CashInService",
]
