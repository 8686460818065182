"""Row shapes for bulk imports.

Spreadsheet rows arrive as loosely typed dicts. `validate_row` turns each one into
either a `ValidRow` (typed, ready for the reconciler) or an `InvalidRow` carrying
the per-field reasons, so the reconciler never has to type-check raw values.
"""

from __future__ import annotations

import io
import math
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, BinaryIO, Callable, Dict, List, Mapping, Optional, Tuple, Union

import pandas as pd

from ..common.validators import (
    require_areas,
    require_category,
    require_cnic,
    require_iso_date,
    require_non_empty,
    require_positive_int,
)
from ..core.enums import ImportMode, PassCategory
from ..core.exceptions import ValidationError
from ..passes.forms import normalize_keys
from ..passes.model import PassDraft


@dataclass(frozen=True)
class ValidRow:
    row: int
    category: PassCategory
    cnic: str
    name: str
    designation: str
    organization: str
    area_allowed: Tuple[str, ...]
    date_of_entry: date
    date_of_expiry: date
    pass_id: Optional[int] = None

    def to_draft(self, *, pass_id: int, author_id: Optional[int]) -> PassDraft:
        return PassDraft(
            pass_id=pass_id,
            category=self.category,
            cnic=self.cnic,
            name=self.name,
            designation=self.designation,
            organization=self.organization,
            area_allowed=self.area_allowed,
            date_of_entry=self.date_of_entry,
            date_of_expiry=self.date_of_expiry,
            author_id=author_id,
        )


@dataclass(frozen=True)
class InvalidRow:
    row: int
    errors: Dict[str, List[str]] = field(default_factory=dict)

    @property
    def message(self) -> str:
        return "; ".join(f"{name}: {', '.join(msgs)}" for name, msgs in self.errors.items())


RowResult = Union[ValidRow, InvalidRow]

_ROW_FIELDS: Dict[str, Callable[[Any], Any]] = {
    "name": lambda v: require_non_empty(v, "name", "Name is required"),
    "category": lambda v: require_category(v),
    "designation": lambda v: require_non_empty(v, "designation", "Designation is required"),
    "organization": lambda v: require_non_empty(v, "organization", "Organization is required"),
    "cnic": lambda v: require_cnic(v),
    "area_allowed": lambda v: tuple(require_areas(v)),
    "date_of_entry": lambda v: require_iso_date(v, "date_of_entry", "Date of Entry"),
    "date_of_expiry": lambda v: require_iso_date(v, "date_of_expiry", "Date of Expiry"),
}


def validate_row(raw: Mapping[str, Any], row: int, *, mode: ImportMode = ImportMode.AUTO) -> RowResult:
    """Pure shape check of one raw row. Never touches the store."""
    if not isinstance(raw, Mapping):
        return InvalidRow(row=row, errors={"row": ["Row must be an object."]})

    data = normalize_keys(raw)
    validators = dict(_ROW_FIELDS)
    if mode == ImportMode.HISTORICAL:
        validators["pass_id"] = lambda v: require_positive_int(v, "pass_id", "Pass ID")

    cleaned: Dict[str, Any] = {}
    errors: Dict[str, List[str]] = {}
    for name, validate in validators.items():
        try:
            cleaned[name] = validate(data.get(name))
        except ValidationError as exc:
            errors.setdefault(name, []).append(str(exc))

    if errors:
        return InvalidRow(row=row, errors=errors)
    return ValidRow(row=row, **cleaned)


def _clean_cell(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    if isinstance(value, (pd.Timestamp, datetime)):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        return value.strip()
    return value


def read_spreadsheet(stream: BinaryIO, filename: str) -> List[Dict[str, Any]]:
    """Load an uploaded .xlsx/.xls/.csv into raw row dicts (header row excluded)."""
    name = (filename or "").lower()
    payload = io.BytesIO(stream.read())
    try:
        if name.endswith(".csv"):
            df = pd.read_csv(payload, dtype=str, keep_default_na=False)
        elif name.endswith((".xlsx", ".xls")):
            df = pd.read_excel(payload, dtype=object)
        else:
            raise ValidationError("Upload a .xlsx, .xls or .csv file.", field="file")
    except (ValueError, UnicodeDecodeError) as exc:
        raise ValidationError(f"Could not read spreadsheet: {exc}", field="file") from exc

    df = df.dropna(how="all")
    return [{str(k): _clean_cell(v) for k, v in record.items()} for record in df.to_dict(orient="records")]
