from __future__ import annotations

from typing import Any, Optional, Protocol, Sequence

from ..core.enums import PassCategory
from .model import IdentityKey, PassChanges, PassDraft, PassRecord


class PassRepository(Protocol):
    """Document-store interface for passes.

    Writes raise DuplicateKeyError when a unique index (cnic, or category + pass_id)
    rejects them, and StoreError for any other database failure.
    """

    def list_pass_ids(self, category: PassCategory) -> Sequence[Any]:
        """Raw stored pass ID values of one category, unparsed."""
        raise NotImplementedError

    def list_identity_keys(self) -> Sequence[IdentityKey]:
        raise NotImplementedError

    def find_id_by_cnic(self, cnic: str, *, exclude_id: Optional[str] = None) -> Optional[str]:
        raise NotImplementedError

    def find_id_by_pass_id(
        self, category: PassCategory, pass_id: int, *, exclude_id: Optional[str] = None
    ) -> Optional[str]:
        raise NotImplementedError

    def get_by_id(self, doc_id: str) -> Optional[PassRecord]:
        raise NotImplementedError

    def get_many(self, doc_ids: Sequence[str]) -> Sequence[PassRecord]:
        raise NotImplementedError

    def get_by_pass_ids(self, category: PassCategory, pass_ids: Sequence[int]) -> Sequence[PassRecord]:
        raise NotImplementedError

    def list_all(self) -> Sequence[PassRecord]:
        """All passes, newest first."""
        raise NotImplementedError

    def create(self, draft: PassDraft) -> PassRecord:
        raise NotImplementedError

    def create_many(self, drafts: Sequence[PassDraft]) -> Sequence[str]:
        """Insert all drafts in one transaction: either every draft is stored or none is."""
        raise NotImplementedError

    def update(self, doc_id: str, changes: PassChanges) -> PassRecord:
        raise NotImplementedError

    def delete_many(self, doc_ids: Sequence[str]) -> int:
        raise NotImplementedError
