from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from ..core.constants import DEFAULT_MAX_IMPORT_ROWS, IMPORT_ROW_OFFSET
from ..core.enums import ImportMode, ImportStatus, PassCategory
from ..core.exceptions import StoreError, ValidationError
from ..passes.allocator import PassIdAllocator
from ..passes.guard import BatchTracker, UniquenessGuard
from ..passes.model import PassDraft
from ..passes.repository import PassRepository
from .rows import InvalidRow, ValidRow, validate_row

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RowOutcome:
    row: int
    status: ImportStatus
    message: str
    pass_id: Optional[int] = None

    def to_dict(self) -> dict:
        out: Dict[str, Any] = {"row": self.row, "status": self.status.value, "message": self.message}
        if self.pass_id is not None:
            out["passId"] = self.pass_id
        return out


@dataclass
class ImportResult:
    """Per-row report plus the fate of the single commit.

    `committed` is False when nothing was accepted or when the commit failed; in
    the latter case `error` holds the store failure and nothing was written.
    """

    outcomes: List[RowOutcome] = field(default_factory=list)
    committed: bool = False
    error: Optional[str] = None

    @property
    def success_count(self) -> int:
        return sum(1 for o in self.outcomes if o.status == ImportStatus.SUCCESS)

    @property
    def failure_count(self) -> int:
        return len(self.outcomes) - self.success_count

    @property
    def message(self) -> str:
        if self.error:
            return f"Import failed, nothing was saved: {self.error}"
        return f"Processing complete. {self.success_count} successful, {self.failure_count} failed."

    def to_dict(self) -> dict:
        out: Dict[str, Any] = {
            "message": self.message,
            "committed": self.committed,
            "results": [o.to_dict() for o in self.outcomes],
        }
        if self.error:
            out["error"] = self.error
        return out


class BulkImportReconciler:
    """Validates a batch of spreadsheet rows, drops the colliding ones and commits the rest at once.

    Row problems (bad shape, duplicate CNIC, duplicate pass ID) only fail their own row.
    A failed commit fails the whole batch: the report still comes back, nothing is stored.
    """

    def __init__(
        self,
        passes: PassRepository,
        allocator: PassIdAllocator,
        guard: UniquenessGuard,
        *,
        max_rows: int = DEFAULT_MAX_IMPORT_ROWS,
    ):
        self._passes = passes
        self._allocator = allocator
        self._guard = guard
        self._max_rows = int(max_rows)

    def reconcile(
        self,
        rows: Sequence[Mapping[str, Any]],
        *,
        author_id: Optional[int],
        mode: ImportMode = ImportMode.AUTO,
    ) -> ImportResult:
        if not rows:
            raise ValidationError("No pass data provided.", field="passes")
        if len(rows) > self._max_rows:
            raise ValidationError(f"Too many rows: {len(rows)} (limit {self._max_rows}).", field="passes")

        # One store round trip for every uniqueness check in the batch.
        tracker = self._guard.new_batch_tracker()
        outcomes: List[RowOutcome] = []
        accepted_shape: List[Tuple[Mapping[str, Any], ValidRow]] = []

        for index, raw in enumerate(rows):
            checked = validate_row(raw, index + IMPORT_ROW_OFFSET, mode=mode)
            if isinstance(checked, InvalidRow):
                outcomes.append(RowOutcome(checked.row, ImportStatus.ERROR, checked.message))
                continue
            accepted_shape.append((raw, checked))

        # Categories are reconciled one after another, in order of first appearance.
        groups: Dict[PassCategory, List[Tuple[Mapping[str, Any], ValidRow]]] = {}
        for raw, row in accepted_shape:
            groups.setdefault(row.category, []).append((raw, row))

        staged: List[PassDraft] = []
        for category, members in groups.items():
            staged.extend(self._reconcile_group(category, members, tracker, outcomes, mode=mode, author_id=author_id))

        result = ImportResult(outcomes=sorted(outcomes, key=lambda o: o.row))

        if staged:
            try:
                self._passes.create_many(staged)
                result.committed = True
            except StoreError as exc:
                logger.error("Bulk import commit of %s pass(es) failed: %s", len(staged), exc)
                result.error = str(exc)

        logger.info(
            "Bulk import (%s) by user %s: %s accepted, %s rejected, committed=%s",
            mode.value, author_id, result.success_count, result.failure_count, result.committed,
        )
        return result

    def _reconcile_group(
        self,
        category: PassCategory,
        members: Sequence[Tuple[Mapping[str, Any], ValidRow]],
        tracker: BatchTracker,
        outcomes: List[RowOutcome],
        *,
        mode: ImportMode,
        author_id: Optional[int],
    ) -> List[PassDraft]:
        historical = mode == ImportMode.HISTORICAL
        # One allocator call per category; later rows count up locally.
        next_id = None if historical else self._allocator.allocate_next_id(category)

        staged: List[PassDraft] = []
        for raw, row in members:
            failed = self._recheck(raw, row, mode)
            if failed:
                outcomes.append(failed)
                continue

            pass_id = int(row.pass_id) if historical else next_id
            # Historical rows report a pass ID collision before a CNIC one.
            reason = tracker.conflict(category, pass_id, row.cnic, pass_id_first=historical)
            if reason:
                outcomes.append(RowOutcome(row.row, ImportStatus.ERROR, reason))
                continue

            tracker.accept(category, pass_id, row.cnic)
            staged.append(row.to_draft(pass_id=pass_id, author_id=author_id))
            outcomes.append(RowOutcome(row.row, ImportStatus.SUCCESS, "Prepared for creation.", pass_id))
            if not historical:
                next_id = pass_id + 1
        return staged

    def _recheck(self, raw: Mapping[str, Any], row: ValidRow, mode: ImportMode) -> Optional[RowOutcome]:
        # Shape is checked again right before staging.
        again = validate_row(raw, row.row, mode=mode)
        if isinstance(again, InvalidRow):
            return RowOutcome(again.row, ImportStatus.ERROR, again.message)
        return None

