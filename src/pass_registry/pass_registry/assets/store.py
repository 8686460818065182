from __future__ import annotations

import logging
import uuid
from pathlib import Path
from typing import BinaryIO, Iterable, Optional, Protocol

from werkzeug.utils import secure_filename

from ..core.constants import ALLOWED_PHOTO_EXTENSIONS
from ..core.exceptions import StoreError, ValidationError

logger = logging.getLogger(__name__)


class AssetStore(Protocol):
    """Blob storage for pass photos. Returns a stable reference for each upload."""

    def upload(self, stream: BinaryIO, filename: str, content_type: Optional[str] = None) -> str:
        raise NotImplementedError

    def path_for(self, asset_ref: str) -> Optional[Path]:
        raise NotImplementedError


class LocalAssetStore(AssetStore):
    """Stores uploads under one directory; the reference is the stored file name."""

    def __init__(
        self,
        root: str | Path,
        *,
        allowed_extensions: Iterable[str] = ALLOWED_PHOTO_EXTENSIONS,
        max_bytes: int = 5 * 1024 * 1024,
    ):
        self._root = Path(root)
        self._allowed = {e.lower() for e in allowed_extensions}
        self._max_bytes = int(max_bytes)

    def _extension(self, filename: str) -> str:
        safe = secure_filename(filename or "")
        ext = safe.rsplit(".", 1)[-1].lower() if "." in safe else ""
        if ext not in self._allowed:
            raise ValidationError(
                f"Unsupported photo type '{ext or filename}'. Allowed: {', '.join(sorted(self._allowed))}",
                field="photo",
            )
        return ext

    def upload(self, stream: BinaryIO, filename: str, content_type: Optional[str] = None) -> str:
        ext = self._extension(filename)
        data = stream.read(self._max_bytes + 1)
        if not data:
            raise ValidationError("Uploaded photo is empty", field="photo")
        if len(data) > self._max_bytes:
            raise ValidationError("Uploaded photo is too large", field="photo")

        asset_ref = f"image-{uuid.uuid4().hex}.{ext}"
        try:
            self._root.mkdir(parents=True, exist_ok=True)
            (self._root / asset_ref).write_bytes(data)
        except OSError as exc:
            raise StoreError(f"Photo upload failed: {exc}") from exc

        logger.info("Stored photo %s (%s bytes, original name %r)", asset_ref, len(data), filename)
        return asset_ref

    def path_for(self, asset_ref: str) -> Optional[Path]:
        safe = secure_filename(asset_ref or "")
        if not safe or safe != asset_ref:
            return None
        path = self._root / safe
        return path if path.is_file() else None
