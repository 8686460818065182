from __future__ import annotations

import logging
from typing import Iterable, Optional, Set, Tuple

from ..core.enums import PassCategory
from ..core.exceptions import ConflictError
from .allocator import parse_pass_id
from .model import IdentityKey
from .repository import PassRepository

logger = logging.getLogger(__name__)


def duplicate_cnic_message(cnic: str) -> str:
    return f"CNIC {cnic} already exists."


def duplicate_pass_id_message(category: PassCategory, pass_id: int) -> str:
    return f"Pass ID {pass_id} already exists for category '{PassCategory(category).value}'."


class BatchTracker:
    """In-memory view of taken (category, pass ID) pairs and CNICs for one bulk import.

    Seeded from a single store fetch, then grows as rows are accepted so later rows
    in the same batch collide with earlier ones that are not stored yet.
    """

    def __init__(self, keys: Iterable[IdentityKey] = ()):
        self._pass_ids: Set[Tuple[str, int]] = set()
        self._cnics: Set[str] = set()
        for key in keys:
            if key.cnic:
                self._cnics.add(key.cnic)
            number = parse_pass_id(key.pass_id)
            if key.category and number is not None:
                self._pass_ids.add((str(key.category), number))

    def conflict(self, category: PassCategory, pass_id: int, cnic: str, *, pass_id_first: bool = False) -> Optional[str]:
        """Reason this row may not be accepted, or None. CNIC is checked first unless `pass_id_first`."""
        cnic_reason = duplicate_cnic_message(cnic) if cnic in self._cnics else None
        pass_id_reason = None
        if (PassCategory(category).value, int(pass_id)) in self._pass_ids:
            pass_id_reason = duplicate_pass_id_message(category, pass_id)

        if pass_id_first:
            return pass_id_reason or cnic_reason
        return cnic_reason or pass_id_reason

    def cnic_taken(self, cnic: str) -> bool:
        return cnic in self._cnics

    def accept(self, category: PassCategory, pass_id: int, cnic: str) -> None:
        self._pass_ids.add((PassCategory(category).value, int(pass_id)))
        self._cnics.add(cnic)


class UniquenessGuard:
    """Enforces CNIC uniqueness globally and pass ID uniqueness per category."""

    def __init__(self, passes: PassRepository):
        self._passes = passes

    def check_cnic(self, cnic: str, *, exclude_id: Optional[str] = None) -> None:
        if self._passes.find_id_by_cnic(cnic, exclude_id=exclude_id):
            logger.info("Rejected duplicate CNIC %s", cnic)
            raise ConflictError(duplicate_cnic_message(cnic), value=cnic)

    def check_pass_id(self, category: PassCategory, pass_id: int, *, exclude_id: Optional[str] = None) -> None:
        if self._passes.find_id_by_pass_id(category, pass_id, exclude_id=exclude_id):
            logger.info("Rejected duplicate pass ID %s/%s", PassCategory(category).value, pass_id)
            raise ConflictError(duplicate_pass_id_message(category, pass_id), value=(category, pass_id))

    def check(self, category: PassCategory, pass_id: int, cnic: str, *, exclude_id: Optional[str] = None) -> None:
        self.check_cnic(cnic, exclude_id=exclude_id)
        self.check_pass_id(category, pass_id, exclude_id=exclude_id)

    def new_batch_tracker(self) -> BatchTracker:
        return BatchTracker(self._passes.list_identity_keys())
