from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User roles used for authorization."""

    ADMIN = "admin"
    EDITOR = "editor"
    VIEWER = "viewer"


class PassCategory(str, Enum):
    """Partitions of the pass numbering space."""

    CARGO = "cargo"
    LANDSIDE = "landside"


class ImportStatus(str, Enum):
    SUCCESS = "Success"
    ERROR = "Error"


class ImportMode(str, Enum):
    """AUTO allocates pass IDs; HISTORICAL takes them from the spreadsheet."""

    AUTO = "auto"
    HISTORICAL = "historical"


class PassSort(str, Enum):
    CREATED_DESC = "createdAt_desc"
    PASS_ID_ASC = "passId_asc"
    PASS_ID_DESC = "passId_desc"
    NAME_ASC = "name_asc"
    EXPIRY_ASC = "expiry_asc"
