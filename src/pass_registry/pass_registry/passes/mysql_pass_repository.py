from __future__ import annotations

import json
import uuid
from typing import Any, Dict, Optional, Sequence

from ..core.enums import PassCategory
from ..core.exceptions import NotFoundError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import IdentityKey, PassChanges, PassDraft, PassRecord
from .repository import PassRepository

_SELECT = """
    SELECT p.doc_id, p.pass_id, p.category, p.cnic, p.name, p.designation, p.organization,
           p.area_allowed, p.date_of_entry, p.date_of_expiry, p.photo_ref, p.author_id,
           p.created_at, u.name AS author_name
    FROM passes p
    LEFT JOIN users u ON u.user_id = p.author_id
"""

_INSERT = """
    INSERT INTO passes(doc_id, pass_id, category, cnic, name, designation, organization,
                       area_allowed, date_of_entry, date_of_expiry, photo_ref, author_id)
    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
"""

# PassChanges attribute -> column
_PATCHABLE = {
    "name": "name",
    "category": "category",
    "designation": "designation",
    "organization": "organization",
    "cnic": "cnic",
    "area_allowed": "area_allowed",
    "date_of_entry": "date_of_entry",
    "date_of_expiry": "date_of_expiry",
    "pass_id": "pass_id",
    "photo_ref": "photo_ref",
}


def _parse_stored_pass_id(value: Any) -> Optional[int]:
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return None


def _parse_areas(value: Any) -> tuple:
    if value is None:
        return ()
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8")
    if isinstance(value, str):
        value = json.loads(value or "[]")
    return tuple(str(v) for v in value)


def _to_record(row: Dict[str, Any]) -> PassRecord:
    return PassRecord(
        id=row["doc_id"],
        pass_id=_parse_stored_pass_id(row["pass_id"]),
        category=PassCategory(row["category"]),
        cnic=row["cnic"],
        name=row["name"],
        designation=row["designation"],
        organization=row["organization"],
        area_allowed=_parse_areas(row.get("area_allowed")),
        date_of_entry=row["date_of_entry"],
        date_of_expiry=row["date_of_expiry"],
        photo_ref=row.get("photo_ref"),
        author_id=row.get("author_id"),
        author_name=row.get("author_name"),
        created_at=row.get("created_at"),
    )


def _insert_params(doc_id: str, d: PassDraft) -> tuple:
    return (
        doc_id,
        str(int(d.pass_id)),
        d.category.value,
        d.cnic,
        d.name,
        d.designation,
        d.organization,
        json.dumps(list(d.area_allowed)),
        d.date_of_entry,
        d.date_of_expiry,
        d.photo_ref,
        d.author_id,
    )


def _column_value(attr: str, value: Any) -> Any:
    if attr == "category":
        return value.value
    if attr == "pass_id":
        return str(int(value))
    if attr == "area_allowed":
        return json.dumps(list(value))
    return value


def _new_doc_id() -> str:
    return uuid.uuid4().hex


class MySQLPassRepository(PassRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_pass_ids(self, category: PassCategory) -> Sequence[Any]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT pass_id FROM passes WHERE category=%s", (category.value,))
            return [r["pass_id"] for r in fetchall(cur)]

    def list_identity_keys(self) -> Sequence[IdentityKey]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT category, pass_id, cnic FROM passes")
            return [
                IdentityKey(category=r["category"], pass_id=r["pass_id"], cnic=r.get("cnic"))
                for r in fetchall(cur)
            ]

    def find_id_by_cnic(self, cnic: str, *, exclude_id: Optional[str] = None) -> Optional[str]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT doc_id FROM passes WHERE cnic=%s AND doc_id<>%s LIMIT 1",
                (cnic, exclude_id or ""),
            )
            row = fetchone(cur)
            return row["doc_id"] if row else None

    def find_id_by_pass_id(
        self, category: PassCategory, pass_id: int, *, exclude_id: Optional[str] = None
    ) -> Optional[str]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT doc_id FROM passes WHERE category=%s AND pass_id=%s AND doc_id<>%s LIMIT 1",
                (category.value, str(int(pass_id)), exclude_id or ""),
            )
            row = fetchone(cur)
            return row["doc_id"] if row else None

    def get_by_id(self, doc_id: str) -> Optional[PassRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE p.doc_id=%s", (doc_id,))
            row = fetchone(cur)
            return _to_record(row) if row else None

    def get_many(self, doc_ids: Sequence[str]) -> Sequence[PassRecord]:
        if not doc_ids:
            return []
        placeholders = ",".join(["%s"] * len(doc_ids))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + f" WHERE p.doc_id IN ({placeholders})", tuple(doc_ids))
            return [_to_record(r) for r in fetchall(cur)]

    def get_by_pass_ids(self, category: PassCategory, pass_ids: Sequence[int]) -> Sequence[PassRecord]:
        if not pass_ids:
            return []
        placeholders = ",".join(["%s"] * len(pass_ids))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SELECT + f" WHERE p.category=%s AND p.pass_id IN ({placeholders})",
                (category.value, *[str(int(p)) for p in pass_ids]),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def list_all(self) -> Sequence[PassRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " ORDER BY p.created_at DESC")
            return [_to_record(r) for r in fetchall(cur)]

    def create(self, draft: PassDraft) -> PassRecord:
        doc_id = _new_doc_id()
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_INSERT, _insert_params(doc_id, draft))
        created = self.get_by_id(doc_id)
        if created is None:
            raise NotFoundError(f"Pass {doc_id} vanished after insert")
        return created

    def create_many(self, drafts: Sequence[PassDraft]) -> Sequence[str]:
        doc_ids = [_new_doc_id() for _ in drafts]
        with db_cursor(self._conn_factory) as (_, cur):
            cur.executemany(_INSERT, [_insert_params(doc_id, d) for doc_id, d in zip(doc_ids, drafts)])
        return doc_ids

    def update(self, doc_id: str, changes: PassChanges) -> PassRecord:
        columns = changes.as_columns()
        if columns:
            assignments = ", ".join(f"{_PATCHABLE[attr]}=%s" for attr in columns)
            params = [_column_value(attr, value) for attr, value in columns.items()]
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(f"UPDATE passes SET {assignments} WHERE doc_id=%s", (*params, doc_id))

        updated = self.get_by_id(doc_id)
        if updated is None:
            raise NotFoundError("Pass not found")
        return updated

    def delete_many(self, doc_ids: Sequence[str]) -> int:
        if not doc_ids:
            return 0
        placeholders = ",".join(["%s"] * len(doc_ids))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"DELETE FROM passes WHERE doc_id IN ({placeholders})", tuple(doc_ids))
            return cur.rowcount
