from __future__ import annotations

import re
from datetime import date, datetime
from typing import Any, Iterable, List, Optional

from ..core.constants import CNIC_PATTERN, ISO_DATE_PATTERN
from ..core.enums import PassCategory
from ..core.exceptions import ValidationError
from .datetime_utils import parse_iso_date

_CNIC_RE = re.compile(CNIC_PATTERN)
_ISO_DATE_RE = re.compile(ISO_DATE_PATTERN)


def require_non_empty(value: Any, field_name: str, message: Optional[str] = None) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(message or f"{field_name} is required", field=field_name)
    return str(value).strip()


def require_min_length(value: Any, field_name: str, min_len: int, message: Optional[str] = None) -> str:
    text = "" if value is None else str(value).strip()
    if len(text) < min_len:
        raise ValidationError(message or f"{field_name} must be at least {min_len} characters", field=field_name)
    return text


def require_cnic(value: Any, field_name: str = "cnic") -> str:
    text = "" if value is None else str(value).strip()
    if not _CNIC_RE.match(text):
        raise ValidationError("Invalid CNIC format.", field=field_name)
    return text


def require_category(value: Any, field_name: str = "category") -> PassCategory:
    text = "" if value is None else str(value).strip().lower()
    try:
        return PassCategory(text)
    except ValueError:
        raise ValidationError("Category must be 'cargo' or 'landside'.", field=field_name)


def require_iso_date(value: Any, field_name: str, label: str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    text = "" if value is None else str(value).strip()
    if not _ISO_DATE_RE.match(text):
        raise ValidationError(f"Invalid {label} format.", field=field_name)
    try:
        return parse_iso_date(text)
    except ValueError:
        raise ValidationError(f"Invalid {label}.", field=field_name)


def require_positive_int(value: Any, field_name: str, label: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{label} must be a number.", field=field_name)
    if isinstance(value, float):
        if not value.is_integer():
            raise ValidationError(f"{label} must be a whole number.", field=field_name)
        number = int(value)
    else:
        try:
            number = int(str(value).strip())
        except (TypeError, ValueError):
            raise ValidationError(f"{label} must be a number.", field=field_name)
    if number <= 0:
        raise ValidationError(f"{label} must be a positive number.", field=field_name)
    return number


def split_areas(value: Any) -> List[str]:
    """Accept a comma-joined string or an iterable of labels; drop blanks and repeats."""
    if value is None:
        return []
    if isinstance(value, str):
        parts: Iterable[Any] = value.split(",")
    else:
        parts = value

    out: list[str] = []
    for part in parts:
        label = str(part).strip()
        if label and label not in out:
            out.append(label)
    return out


def require_areas(value: Any, field_name: str = "area_allowed") -> List[str]:
    areas = split_areas(value)
    if not areas:
        raise ValidationError("At least one area must be selected.", field=field_name)
    return areas
