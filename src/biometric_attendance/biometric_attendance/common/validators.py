from __future__ import annotations

from datetime import date
from typing import Iterable, Optional

from ..core.exceptions import ValidationError


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def require_max_length(value: Optional[str], field_name: str, max_len: int) -> Optional[str]:
    if value is not None and len(value) > max_len:
        raise ValidationError(f"{field_name} must be at most {max_len} characters")
    return value


def require_int_between(value, field_name: str, low: int, high: int) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a whole number")
    if number < low or number > high:
        raise ValidationError(f"{field_name} must be between {low} and {high}")
    return number


def require_date_order(start: date, end: date) -> None:
    if start > end:
        raise ValidationError("Start date must be on or before end date")


def parse_id_list(values: Iterable) -> list[int]:
    """Turn request values (strings, ints, comma lists) into a list of ids."""
    ids: list[int] = []
    for raw in values or []:
        for part in str(raw).split(","):
            part = part.strip()
            if not part:
                continue
            if not part.isdigit():
                raise ValidationError(f"Invalid id: {part}")
            ids.append(int(part))
    return ids


def optional_int(value) -> Optional[int]:
    if value is None or str(value).strip() in {"", "all"}:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid id: {value}")


def optional_bool(value) -> Optional[bool]:
    """Checkbox/JSON flag; None when the field was not sent."""
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"1", "true", "on", "yes"}
