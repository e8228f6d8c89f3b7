# src/core/matching/__init__.py
"""
Driver matching.
"""

from src.core.matching.service import DriverCandidate, MatchingService

__all__ = [
    "DriverCandidate",
    "MatchingService",
]
