from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List, Optional, Tuple

from ..core.enums import PassCategory


@dataclass(frozen=True)
class PassRecord:
    """Domain entity: a persisted employee pass.

    `pass_id` is None only for legacy rows whose stored number is not numeric.
    """

    id: str
    pass_id: Optional[int]
    category: PassCategory
    cnic: str
    name: str
    designation: str
    organization: str
    area_allowed: Tuple[str, ...]
    date_of_entry: date
    date_of_expiry: date
    photo_ref: Optional[str] = None
    author_id: Optional[int] = None
    author_name: Optional[str] = None
    created_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "passId": self.pass_id,
            "category": self.category.value,
            "cnic": self.cnic,
            "name": self.name,
            "designation": self.designation,
            "organization": self.organization,
            "areaAllowed": list(self.area_allowed),
            "dateOfEntry": self.date_of_entry.isoformat(),
            "dateOfExpiry": self.date_of_expiry.isoformat(),
            "photo": self.photo_ref,
            "author": {"id": self.author_id, "name": self.author_name} if self.author_id is not None else None,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass(frozen=True)
class PassDraft:
    """A validated pass ready to be created (pass_id already assigned)."""

    pass_id: int
    category: PassCategory
    cnic: str
    name: str
    designation: str
    organization: str
    area_allowed: Tuple[str, ...]
    date_of_entry: date
    date_of_expiry: date
    author_id: Optional[int] = None
    photo_ref: Optional[str] = None


@dataclass
class PassChanges:
    """Partial update; None means "leave as is"."""

    name: Optional[str] = None
    category: Optional[PassCategory] = None
    designation: Optional[str] = None
    organization: Optional[str] = None
    cnic: Optional[str] = None
    area_allowed: Optional[Tuple[str, ...]] = None
    date_of_entry: Optional[date] = None
    date_of_expiry: Optional[date] = None
    pass_id: Optional[int] = None
    photo_ref: Optional[str] = None

    def as_columns(self) -> dict:
        return {k: v for k, v in self.__dict__.items() if v is not None}

    def is_empty(self) -> bool:
        return not self.as_columns()


@dataclass(frozen=True)
class IdentityKey:
    """The uniqueness-relevant projection of a stored pass."""

    category: str
    pass_id: object
    cnic: Optional[str]


@dataclass(frozen=True)
class DeleteOutcome:
    deleted: List[str]
    skipped: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class DashboardStats:
    total_passes: int
    active_passes: int
    expired_passes: int
    today_created: int
    recent: List[PassRecord]

    def to_dict(self) -> dict:
        return {
            "stats": {
                "totalPasses": self.total_passes,
                "activePasses": self.active_passes,
                "expiredPasses": self.expired_passes,
                "todayCreated": self.today_created,
            },
            "recentActivity": [p.to_dict() for p in self.recent],
        }
