# src/core/geo/__init__.py
"""
Geo helpers.
Distance maths and reverse geocoding.
"""

from src.core.geo.service import GeoService
from src.core.geo.utils import calculate_distance

__all__ = [
    "GeoService",
    "calculate_distance",
]
