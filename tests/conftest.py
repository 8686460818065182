from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple

import pytest
from werkzeug.security import generate_password_hash

from src.pass_registry.pass_registry.assets.store import LocalAssetStore
from src.pass_registry.pass_registry.container import wire
from src.pass_registry.pass_registry.core.enums import PassCategory, Role
from src.pass_registry.pass_registry.core.exceptions import DuplicateKeyError, StoreError
from src.pass_registry.pass_registry.passes.model import IdentityKey, PassChanges, PassDraft, PassRecord
from src.pass_registry.pass_registry.users.model import ActingUser, User


class FakePassRepository:
    """In-memory pass store with the same unique keys as the MySQL schema."""

    def __init__(self):
        self._docs: Dict[str, Tuple[Any, PassRecord]] = {}
        self._seq = 0
        self.fail_commit = False
        self.identity_fetches = 0
        self.pass_id_fetches = 0
        self.create_many_calls = 0
        self.authors: Dict[int, str] = {}

    # ---- helpers for tests ----

    def _next_doc(self) -> Tuple[str, datetime]:
        self._seq += 1
        return f"doc{self._seq:04d}", datetime(2026, 1, 1, 8, 0, 0) + timedelta(seconds=self._seq)

    def seed(
        self,
        *,
        category: str = "cargo",
        pass_id: Any = 1039,
        cnic: str = "11111-1111111-1",
        name: str = "Seeded Person",
        author_id: Optional[int] = 1,
        date_of_entry: date = date(2026, 1, 1),
        date_of_expiry: date = date(2027, 1, 1),
    ) -> PassRecord:
        doc_id, created_at = self._next_doc()
        try:
            parsed = int(str(pass_id).strip())
        except ValueError:
            parsed = None
        record = PassRecord(
            id=doc_id,
            pass_id=parsed,
            category=PassCategory(category),
            cnic=cnic,
            name=name,
            designation="Loader",
            organization="PAA",
            area_allowed=("Apron",),
            date_of_entry=date_of_entry,
            date_of_expiry=date_of_expiry,
            author_id=author_id,
            author_name=self.authors.get(author_id),
            created_at=created_at,
        )
        self._docs[doc_id] = (pass_id, record)
        return record

    def count(self) -> int:
        return len(self._docs)

    def all_records(self) -> List[PassRecord]:
        return [r for _, r in self._docs.values()]

    def _check_unique(self, category: str, pass_id: int, cnic: str, *, exclude_id: Optional[str] = None, pending=()):
        taken = [(str(raw), r.category.value, r.cnic) for d, (raw, r) in self._docs.items() if d != exclude_id]
        taken += list(pending)
        for raw, cat, existing_cnic in taken:
            if existing_cnic == cnic:
                raise DuplicateKeyError("Duplicate entry for key 'uq_passes_cnic'", key="cnic")
            if cat == category and raw == str(pass_id):
                raise DuplicateKeyError("Duplicate entry for key 'uq_passes_category_pass_id'", key="pass_id")

    def _record_from(self, doc_id: str, created_at: datetime, d: PassDraft) -> PassRecord:
        return PassRecord(
            id=doc_id,
            pass_id=int(d.pass_id),
            category=d.category,
            cnic=d.cnic,
            name=d.name,
            designation=d.designation,
            organization=d.organization,
            area_allowed=tuple(d.area_allowed),
            date_of_entry=d.date_of_entry,
            date_of_expiry=d.date_of_expiry,
            photo_ref=d.photo_ref,
            author_id=d.author_id,
            author_name=self.authors.get(d.author_id),
            created_at=created_at,
        )

    # ---- PassRepository ----

    def list_pass_ids(self, category):
        self.pass_id_fetches += 1
        return [raw for raw, r in self._docs.values() if r.category == PassCategory(category)]

    def list_identity_keys(self):
        self.identity_fetches += 1
        return [IdentityKey(category=r.category.value, pass_id=raw, cnic=r.cnic) for raw, r in self._docs.values()]

    def find_id_by_cnic(self, cnic, *, exclude_id=None):
        for doc_id, (_, r) in self._docs.items():
            if r.cnic == cnic and doc_id != exclude_id:
                return doc_id
        return None

    def find_id_by_pass_id(self, category, pass_id, *, exclude_id=None):
        for doc_id, (raw, r) in self._docs.items():
            if r.category == PassCategory(category) and str(raw) == str(pass_id) and doc_id != exclude_id:
                return doc_id
        return None

    def get_by_id(self, doc_id):
        entry = self._docs.get(doc_id)
        return entry[1] if entry else None

    def get_many(self, doc_ids):
        return [self._docs[d][1] for d in doc_ids if d in self._docs]

    def get_by_pass_ids(self, category, pass_ids):
        wanted = {int(p) for p in pass_ids}
        return [r for _, r in self._docs.values() if r.category == PassCategory(category) and r.pass_id in wanted]

    def list_all(self):
        return sorted(self.all_records(), key=lambda r: r.created_at, reverse=True)

    def create(self, draft):
        self._check_unique(draft.category.value, draft.pass_id, draft.cnic)
        doc_id, created_at = self._next_doc()
        record = self._record_from(doc_id, created_at, draft)
        self._docs[doc_id] = (str(draft.pass_id), record)
        return record

    def create_many(self, drafts):
        self.create_many_calls += 1
        if self.fail_commit:
            raise StoreError("transaction aborted")

        pending = []
        for d in drafts:
            self._check_unique(d.category.value, d.pass_id, d.cnic, pending=pending)
            pending.append((str(d.pass_id), d.category.value, d.cnic))

        ids = []
        for d in drafts:
            doc_id, created_at = self._next_doc()
            self._docs[doc_id] = (str(d.pass_id), self._record_from(doc_id, created_at, d))
            ids.append(doc_id)
        return ids

    def update(self, doc_id, changes: PassChanges):
        raw, current = self._docs[doc_id]
        cols = changes.as_columns()
        new_raw = str(cols["pass_id"]) if "pass_id" in cols else raw
        category = cols.get("category", current.category)
        cnic = cols.get("cnic", current.cnic)
        self._check_unique(PassCategory(category).value, new_raw, cnic, exclude_id=doc_id)

        values = dict(current.__dict__)
        values.update(cols)
        values["area_allowed"] = tuple(values["area_allowed"])
        updated = PassRecord(**values)
        self._docs[doc_id] = (new_raw, updated)
        return updated

    def delete_many(self, doc_ids):
        removed = 0
        for d in doc_ids:
            if self._docs.pop(d, None) is not None:
                removed += 1
        return removed


class FakeUserRepository:
    def __init__(self):
        self._users: Dict[int, User] = {}
        self._next_id = 1

    def add(self, *, username: str, password: str, role: Role, name: str = "", is_active: bool = True) -> User:
        user = User(
            user_id=self._next_id,
            name=name or username.title(),
            username=username,
            password_hash=generate_password_hash(password),
            role=role,
            is_active=is_active,
        )
        self._users[user.user_id] = user
        self._next_id += 1
        return user

    def get_by_id(self, user_id):
        return self._users.get(int(user_id))

    def get_by_username(self, username):
        return next((u for u in self._users.values() if u.username == username), None)

    def create_user(self, *, name, username, password_hash, role):
        user = User(user_id=self._next_id, name=name, username=username, password_hash=password_hash, role=role)
        self._users[user.user_id] = user
        self._next_id += 1
        return user.user_id

    def update_role(self, user_id, *, role):
        user = self._users.get(int(user_id))
        if not user:
            return False
        self._users[user.user_id] = User(**{**user.__dict__, "role": role})
        return True

    def list_all(self):
        return sorted(self._users.values(), key=lambda u: u.user_id, reverse=True)


def valid_form(**overrides) -> dict:
    data = {
        "name": "Ali Raza",
        "designation": "Cargo Handler",
        "organization": "PIA Cargo",
        "cnic": "35202-1234567-1",
        "category": "cargo",
        "areaAllowed": ["Apron", "Cargo Shed"],
        "dateOfEntry": "2026-01-10",
        "dateOfExpiry": "2027-01-09",
    }
    data.update(overrides)
    return data


def sheet_row(**overrides) -> dict:
    """A spreadsheet row as the front end posts it (areas comma-joined)."""
    data = valid_form(**overrides)
    if isinstance(data.get("areaAllowed"), list):
        data["areaAllowed"] = ", ".join(data["areaAllowed"])
    return data


@pytest.fixture
def pass_repo():
    return FakePassRepository()


@pytest.fixture
def user_repo():
    return FakeUserRepository()


@pytest.fixture
def container(pass_repo, user_repo, tmp_path):
    return wire(users_repo=user_repo, passes_repo=pass_repo, asset_store=LocalAssetStore(tmp_path / "uploads"))


@pytest.fixture
def admin():
    return ActingUser(user_id=1, role=Role.ADMIN)


@pytest.fixture
def editor():
    return ActingUser(user_id=2, role=Role.EDITOR)


@pytest.fixture
def other_editor():
    return ActingUser(user_id=3, role=Role.EDITOR)
