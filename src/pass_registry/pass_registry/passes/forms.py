from __future__ import annotations

import re
from typing import Any, Callable, Dict, List, Mapping

from ..common.validators import (
    require_areas,
    require_category,
    require_cnic,
    require_iso_date,
    require_min_length,
)
from ..core.exceptions import ValidationError
from .model import PassChanges

# Incoming key (camelCase API, spreadsheet header, snake_case) -> canonical field.
_FIELD_ALIASES = {
    "id": "id",
    "passid": "pass_id",
    "name": "name",
    "fullname": "name",
    "category": "category",
    "designation": "designation",
    "organization": "organization",
    "organisation": "organization",
    "cnic": "cnic",
    "areaallowed": "area_allowed",
    "areasallowed": "area_allowed",
    "dateofentry": "date_of_entry",
    "dateofexpiry": "date_of_expiry",
}


def canonical_field(key: Any) -> str | None:
    folded = re.sub(r"[\s_\-()]", "", str(key)).lower()
    return _FIELD_ALIASES.get(folded)


def normalize_keys(data: Mapping[str, Any]) -> Dict[str, Any]:
    """Map whatever keys a client or spreadsheet used onto canonical field names; unknown keys drop."""
    out: Dict[str, Any] = {}
    for key, value in data.items():
        field = canonical_field(key)
        if field and field not in out:
            out[field] = value
    return out


# field -> validator; the messages mirror what the front end shows next to each input.
_PASS_FIELDS: Dict[str, Callable[[Any], Any]] = {
    "name": lambda v: require_min_length(v, "name", 3, "Name must be at least 3 characters."),
    "designation": lambda v: require_min_length(v, "designation", 2, "Designation is required."),
    "organization": lambda v: require_min_length(v, "organization", 2, "Organization is required."),
    "cnic": lambda v: require_cnic(v),
    "category": lambda v: require_category(v),
    "area_allowed": lambda v: tuple(require_areas(v)),
    "date_of_entry": lambda v: require_iso_date(v, "date_of_entry", "entry date"),
    "date_of_expiry": lambda v: require_iso_date(v, "date_of_expiry", "expiry date"),
}


def _run(validators: Mapping[str, Callable[[Any], Any]], data: Mapping[str, Any]) -> Dict[str, Any]:
    cleaned: Dict[str, Any] = {}
    errors: Dict[str, List[str]] = {}
    for field, validate in validators.items():
        try:
            cleaned[field] = validate(data.get(field))
        except ValidationError as exc:
            errors.setdefault(field, []).append(str(exc))
    if errors:
        raise ValidationError("Validation failed", errors=errors)
    return cleaned


def validate_new_pass(data: Mapping[str, Any]) -> Dict[str, Any]:
    """Every field required. No cross-field date check: expiry before entry is accepted."""
    return _run(_PASS_FIELDS, normalize_keys(data))


def validate_changes(data: Mapping[str, Any]) -> PassChanges:
    """Validate only the fields the caller supplied."""
    supplied = {
        k: v
        for k, v in normalize_keys(data).items()
        if k in _PASS_FIELDS and v is not None
    }
    cleaned = _run({k: _PASS_FIELDS[k] for k in supplied}, supplied)
    return PassChanges(**cleaned)
