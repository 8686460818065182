from __future__ import annotations

import io
import logging
from datetime import date
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple

import pandas as pd

from ..assets.store import AssetStore
from ..common.datetime_utils import today_local
from ..common.validators import require_category
from ..core.constants import DEFAULT_PASS_ID_MAX_RETRIES, DEFAULT_RECENT_LIMIT
from ..core.enums import PassCategory, PassSort
from ..core.exceptions import (
    AuthorizationError,
    ConflictError,
    DuplicateKeyError,
    NotFoundError,
    ValidationError,
)
from ..users.model import ActingUser
from .allocator import PassIdAllocator
from .forms import validate_changes, validate_new_pass
from .guard import UniquenessGuard, duplicate_cnic_message, duplicate_pass_id_message
from .model import DashboardStats, DeleteOutcome, PassDraft, PassRecord
from .repository import PassRepository

logger = logging.getLogger(__name__)


def _sort_key(sort: PassSort):
    if sort == PassSort.PASS_ID_ASC or sort == PassSort.PASS_ID_DESC:
        return lambda p: p.pass_id or 0
    if sort == PassSort.NAME_ASC:
        return lambda p: p.name.lower()
    if sort == PassSort.EXPIRY_ASC:
        return lambda p: p.date_of_expiry or date.min
    return lambda p: p.created_at.timestamp() if p.created_at else 0.0


def matches_search(record: PassRecord, term: str) -> bool:
    """Case-insensitive substring match; CNIC also matches with or without dashes."""
    term = (term or "").strip().lower()
    if not term:
        return True
    term_no_dash = term.replace("-", "")
    cnic_digits = record.cnic.replace("-", "")

    fields = [
        record.name,
        record.organization,
        record.designation,
        record.author_name or "",
        str(record.pass_id) if record.pass_id is not None else "",
        " ".join(record.area_allowed),
    ]
    if any(term in f.lower() for f in fields):
        return True
    return bool(term_no_dash) and term_no_dash in cnic_digits


class PassService:
    """Use cases around single pass records: create, update, delete and the registry reads."""

    def __init__(
        self,
        passes: PassRepository,
        allocator: PassIdAllocator,
        guard: UniquenessGuard,
        assets: Optional[AssetStore] = None,
        *,
        max_retries: int = DEFAULT_PASS_ID_MAX_RETRIES,
    ):
        self._passes = passes
        self._allocator = allocator
        self._guard = guard
        self._assets = assets
        self._max_retries = max(1, int(max_retries))

    # ---------- writes ----------

    def _upload_photo(self, photo) -> Optional[str]:
        if photo is None or not getattr(photo, "filename", ""):
            return None
        if self._assets is None:
            raise ValidationError("Photo uploads are not configured", field="photo")
        return self._assets.upload(photo.stream, photo.filename, getattr(photo, "mimetype", None))

    def _conflict_from(self, exc: DuplicateKeyError, *, category: PassCategory, pass_id: int, cnic: str) -> ConflictError:
        if exc.key == "cnic":
            return ConflictError(duplicate_cnic_message(cnic), value=cnic)
        return ConflictError(duplicate_pass_id_message(category, pass_id), value=(category, pass_id))

    def create_pass(self, data: Mapping[str, Any], *, actor: ActingUser, photo=None) -> PassRecord:
        fields = validate_new_pass(data)
        category: PassCategory = fields["category"]

        # The pass ID is fresh, so only the CNIC needs a pre-check.
        self._guard.check_cnic(fields["cnic"])
        photo_ref = self._upload_photo(photo)

        for attempt in range(1, self._max_retries + 1):
            pass_id = self._allocator.allocate_next_id(category)
            try:
                self._guard.check_pass_id(category, pass_id)
            except ConflictError:
                if attempt < self._max_retries:
                    logger.warning("Pass ID %s/%s already taken, re-allocating (attempt %s)", category.value, pass_id, attempt)
                    continue
                raise

            draft = PassDraft(
                pass_id=pass_id,
                author_id=actor.user_id,
                photo_ref=photo_ref,
                **fields,
            )
            try:
                record = self._passes.create(draft)
            except DuplicateKeyError as exc:
                if exc.key == "pass_id" and attempt < self._max_retries:
                    logger.warning(
                        "Pass ID %s/%s taken by a concurrent write, re-allocating (attempt %s)",
                        category.value, pass_id, attempt,
                    )
                    continue
                raise self._conflict_from(exc, category=category, pass_id=pass_id, cnic=draft.cnic) from exc

            logger.info("Pass %s/%s created for CNIC %s by user %s", category.value, pass_id, draft.cnic, actor.user_id)
            return record

        raise AssertionError("unreachable")

    def update_pass(self, doc_id: str, data: Mapping[str, Any], *, actor: ActingUser, photo=None) -> PassRecord:
        changes = validate_changes(data)

        current = self._passes.get_by_id(doc_id)
        if current is None:
            raise NotFoundError("Pass not found")
        if not actor.can_modify(current.author_id):
            raise AuthorizationError("Forbidden. Only an admin or the pass author can edit this pass.")

        if changes.cnic is not None and changes.cnic != current.cnic:
            self._guard.check_cnic(changes.cnic, exclude_id=doc_id)

        category_changed = changes.category is not None and changes.category != current.category
        photo_ref = self._upload_photo(photo)
        if photo_ref:
            changes.photo_ref = photo_ref

        if changes.is_empty():
            return current

        for attempt in range(1, self._max_retries + 1):
            if category_changed:
                # The old number is abandoned, never handed back.
                changes.pass_id = self._allocator.allocate_next_id(changes.category)
            try:
                updated = self._passes.update(doc_id, changes)
            except DuplicateKeyError as exc:
                if exc.key == "pass_id" and category_changed and attempt < self._max_retries:
                    logger.warning("Pass ID %s taken during category change, re-allocating", changes.pass_id)
                    continue
                raise self._conflict_from(
                    exc,
                    category=changes.category or current.category,
                    pass_id=changes.pass_id or current.pass_id or 0,
                    cnic=changes.cnic or current.cnic,
                ) from exc

            if category_changed:
                logger.info(
                    "Pass %s moved %s/%s -> %s/%s",
                    doc_id, current.category.value, current.pass_id, updated.category.value, updated.pass_id,
                )
            return updated

        raise AssertionError("unreachable")

    def delete_pass(self, doc_id: str, *, actor: ActingUser) -> None:
        current = self._passes.get_by_id(doc_id)
        if current is None:
            raise NotFoundError("Pass not found")
        if not actor.can_modify(current.author_id):
            raise AuthorizationError("Forbidden. Only an admin or the pass author can delete this pass.")
        self._passes.delete_many([doc_id])
        logger.info("Pass %s/%s deleted by user %s", current.category.value, current.pass_id, actor.user_id)

    def delete_passes(self, doc_ids: Iterable[str], *, actor: ActingUser) -> DeleteOutcome:
        """Delete every pass the actor may delete in one transaction; the rest are skipped."""
        wanted = list(dict.fromkeys(str(i) for i in doc_ids if str(i).strip()))
        if not wanted:
            raise ValidationError("At least one ID is required.", field="ids")

        found = self._passes.get_many(wanted)
        if not found:
            raise NotFoundError("No matching passes found to delete.")

        permitted = [p.id for p in found if actor.can_modify(p.author_id)]
        if not permitted:
            raise AuthorizationError("Forbidden. You do not have permission to delete any of the selected passes.")

        self._passes.delete_many(permitted)
        skipped = [i for i in wanted if i not in set(permitted)]
        logger.info("User %s deleted %s pass(es), skipped %s", actor.user_id, len(permitted), len(skipped))
        return DeleteOutcome(deleted=permitted, skipped=skipped)

    # ---------- reads ----------

    def get_pass(self, doc_id: str) -> PassRecord:
        record = self._passes.get_by_id(doc_id)
        if record is None:
            raise NotFoundError("Employee pass not found")
        return record

    def search(
        self,
        *,
        category: Optional[str] = None,
        search: str = "",
        sort: PassSort | str = PassSort.CREATED_DESC,
    ) -> List[PassRecord]:
        try:
            sort = PassSort(sort)
        except ValueError:
            sort = PassSort.CREATED_DESC

        wanted: Optional[PassCategory] = None
        if category and category != "all":
            try:
                wanted = PassCategory(category)
            except ValueError:
                raise ValidationError("Category must be 'cargo', 'landside' or 'all'.", field="category")

        rows = [
            p
            for p in self._passes.list_all()
            if (wanted is None or p.category == wanted) and matches_search(p, search)
        ]
        reverse = sort in (PassSort.PASS_ID_DESC, PassSort.CREATED_DESC)
        return sorted(rows, key=_sort_key(sort), reverse=reverse)

    def get_by_pass_ids(self, category: str, pass_ids: Sequence[Any]) -> Tuple[List[PassRecord], List[str]]:
        """Passes to print, plus the requested IDs that matched nothing."""
        cat = require_category(category)
        if not pass_ids:
            raise ValidationError("At least one Pass ID is required.", field="passIds")

        numbers: List[int] = []
        for raw in pass_ids:
            try:
                numbers.append(int(str(raw).strip()))
            except ValueError:
                continue

        found = list(self._passes.get_by_pass_ids(cat, numbers)) if numbers else []
        found_ids = {str(p.pass_id) for p in found}
        requested = list(dict.fromkeys(str(raw).strip() for raw in pass_ids))
        not_found = [r for r in requested if r not in found_ids]
        return found, not_found

    def dashboard(self, *, today: Optional[date] = None, recent_limit: int = DEFAULT_RECENT_LIMIT) -> DashboardStats:
        today = today or today_local()
        passes = list(self._passes.list_all())

        active = sum(1 for p in passes if p.date_of_expiry > today)
        created_today = sum(1 for p in passes if p.date_of_entry == today)
        recent = sorted(
            passes,
            key=lambda p: p.created_at.timestamp() if p.created_at else 0.0,
            reverse=True,
        )[:recent_limit]

        return DashboardStats(
            total_passes=len(passes),
            active_passes=active,
            expired_passes=len(passes) - active,
            today_created=created_today,
            recent=recent,
        )

    def export_excel(self, records: Sequence[PassRecord]) -> io.BytesIO:
        data = [
            {
                "Pass ID": p.pass_id,
                "Category": p.category.value,
                "Name": p.name,
                "Designation": p.designation,
                "Organization": p.organization,
                "CNIC": p.cnic,
                "Area Allowed": ", ".join(p.area_allowed),
                "Date of Entry": p.date_of_entry.isoformat(),
                "Date of Expiry": p.date_of_expiry.isoformat(),
                "Created By": p.author_name or "",
            }
            for p in records
        ]
        df = pd.DataFrame(data, columns=[
            "Pass ID", "Category", "Name", "Designation", "Organization",
            "CNIC", "Area Allowed", "Date of Entry", "Date of Expiry", "Created By",
        ])

        # In-memory workbook, nothing written to disk.
        output = io.BytesIO()
        with pd.ExcelWriter(output, engine="openpyxl") as writer:
            df.to_excel(writer, index=False, sheet_name="Passes")
        output.seek(0)
        return output
