# src/common/validators.py
"""
Input validation helpers.
Each helper returns the normalised value or raises ``ValidationError``.
"""

from __future__ import annotations

import math
import re
from typing import Any

from src.common.errors import ValidationError


PHONE_RE = re.compile(r"^[0-9]{9,11}$")


def _to_number(value: Any, field: str) -> float:
    if value is None or value == "" or isinstance(value, bool):
        raise ValidationError(f"{field} is required", details={"field": field})
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be a valid number", details={"field": field})
    if math.isnan(number) or math.isinf(number):
        raise ValidationError(f"{field} must be a valid number", details={"field": field})
    return number


def validate_numeric(
    value: Any,
    field: str,
    *,
    min_value: float = 0,
    max_value: float | None = None,
    unit: str = "",
) -> float:
    """
    Checks that a value is a finite number inside [min_value, max_value].

    Args:
        value: Raw input
        field: Human-readable field name used in messages
        min_value: Inclusive lower bound
        max_value: Inclusive upper bound (None = unbounded)
        unit: Unit suffix for messages

    Returns:
        The value as float
    """
    number = _to_number(value, field)
    suffix = f" {unit}" if unit else ""
    if number < min_value:
        raise ValidationError(f"{field} must be at least {min_value:g}{suffix}", details={"field": field})
    if max_value is not None and number > max_value:
        raise ValidationError(f"{field} cannot exceed {max_value:g}{suffix}", details={"field": field})
    return number


def validate_coordinates(lat: Any, lng: Any, *, label: str = "") -> tuple[float, float]:
    """Validates a latitude/longitude pair."""
    prefix = f"{label} " if label else ""
    latitude = _to_number(lat, f"{prefix}Latitude".strip())
    if not -90 <= latitude <= 90:
        raise ValidationError(f"{prefix}Latitude must be between -90 and 90".strip(), details={"field": "lat"})
    longitude = _to_number(lng, f"{prefix}Longitude".strip())
    if not -180 <= longitude <= 180:
        raise ValidationError(f"{prefix}Longitude must be between -180 and 180".strip(), details={"field": "lng"})
    return latitude, longitude


def validate_optional_coordinates(lat: Any, lng: Any) -> tuple[float | None, float | None]:
    """Coordinates that may be omitted together."""
    if lat is None or lng is None:
        return None, None
    return validate_coordinates(lat, lng)


def validate_distance(value: Any, max_km: float) -> float:
    return validate_numeric(value, "Distance", max_value=max_km, unit="km")


def validate_duration(value: Any, max_seconds: float, field: str = "Duration") -> float:
    return validate_numeric(value, field, max_value=max_seconds, unit="seconds")


def validate_amount(value: Any, *, max_value: float = 10_000_000) -> float:
    """Money amounts must be strictly positive."""
    amount = validate_numeric(value, "Amount", max_value=max_value)
    if amount == 0:
        raise ValidationError("Amount must be greater than zero", details={"field": "amount"})
    return amount


def validate_phone(phone: Any) -> str:
    """Phone numbers are 9 to 11 digits."""
    if phone is None or str(phone).strip() == "":
        raise ValidationError("Phone number is required", details={"field": "phone"})
    value = str(phone).strip()
    if not PHONE_RE.match(value):
        raise ValidationError("Phone number must be 9-11 digits", details={"field": "phone"})
    return value


def validate_driver_code(code: str, prefix: str = "7B") -> str:
    """Business driver id: prefix followed by 001..999."""
    if not re.fullmatch(rf"{re.escape(prefix)}\d{{3}}", code or ""):
        raise ValidationError(
            f"Driver ID must be in format {prefix}XXX (e.g., {prefix}001, {prefix}100)",
            details={"field": "driver_id"},
        )
    if int(code[len(prefix):]) < 1:
        raise ValidationError(f"Driver ID must be between {prefix}001 and {prefix}999", details={"field": "driver_id"})
    return code
