from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Optional

from ..core.constants import BASE_PASS_IDS
from ..core.enums import PassCategory
from ..core.exceptions import ValidationError
from .repository import PassRepository

logger = logging.getLogger(__name__)


def parse_pass_id(value: Any) -> Optional[int]:
    """Integer value of a stored pass ID, or None when it is not a whole number."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def highest_pass_id(values: Iterable[Any]) -> int:
    parsed = [n for n in (parse_pass_id(v) for v in values) if n is not None]
    return max(parsed) if parsed else 0


class PassIdAllocator:
    """Computes the next pass ID of a category from what is stored right now.

    next = max(highest stored ID, base offset) + 1

    There is no counter and no lock: two callers racing on the same category can get
    the same number. The unique index on (category, pass_id) catches that at write time.
    """

    def __init__(self, passes: PassRepository, *, base_offsets: Optional[Mapping[str, int]] = None):
        self._passes = passes
        offsets = dict(BASE_PASS_IDS)
        offsets.update({str(k): int(v) for k, v in (base_offsets or {}).items()})
        self._base_offsets = offsets

    def base_offset(self, category: PassCategory) -> int:
        try:
            return self._base_offsets[PassCategory(category).value]
        except (KeyError, ValueError):
            raise ValidationError(f"Unknown pass category: {category}", field="category")

    def allocate_next_id(self, category: PassCategory) -> int:
        floor = self.base_offset(category)
        # Full column fetch: legacy values may be non-numeric and are filtered here.
        stored = self._passes.list_pass_ids(PassCategory(category))
        next_id = max(highest_pass_id(stored), floor) + 1
        logger.debug("Allocated %s pass ID %s (%s stored, floor %s)", PassCategory(category).value, next_id, len(stored), floor)
        return next_id
