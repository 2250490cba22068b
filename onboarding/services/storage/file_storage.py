"""
Local disk storage for uploaded documents:
- Filename sanitization and unique name generation.
- Validation of file extensions and sizes.
- Saving raw bytes and best-effort deletion by path.
"""

from __future__ import annotations

import os
import secrets
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

from onboarding.config.settings import settings
from onboarding.core.exceptions import StorageError, ValidationError
from onboarding.core.logging import get_logger

logger = get_logger(__name__)

DIR_PERMISSIONS = 0o755
SAFE_CHARS = set("abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789._- ")


def safe_filename(filename: str) -> str:
    """Generate a safe filename by stripping directory components and unsafe chars."""
    name = os.path.basename((filename or "").replace("\\", "/"))
    name = "".join(ch for ch in name if ch in SAFE_CHARS).strip()
    name = name.lstrip(".-")

    if not name:
        name = "document"

    if len(name) > 200:
        stem, ext = os.path.splitext(name)
        name = stem[:200 - len(ext)] + ext

    return name


def generate_unique_filename(original_name: str, *, prefix: Optional[str] = None) -> str:
    """Generate a unique filename with the same extension."""
    stem, ext = os.path.splitext(safe_filename(original_name))
    token = secrets.token_hex(8)
    if prefix:
        return f"{safe_filename(prefix)}_{stem}_{token}{ext.lower()}"
    return f"{stem}_{token}{ext.lower()}"


@dataclass(frozen=True)
class StoredFile:
    path: str
    original_name: str
    mime_type: str
    size: int


class LocalFileStorage:
    """Store bytes under a root directory and hand back a retrievable path."""

    def __init__(
        self,
        root: Optional[str | Path] = None,
        allowed_extensions: Optional[Iterable[str]] = None,
        max_size: Optional[int] = None,
    ):
        self.root = Path(root or settings.UPLOAD_DIR)
        self.allowed_extensions = {
            ext.lstrip(".").lower()
            for ext in (allowed_extensions if allowed_extensions is not None else settings.ALLOWED_EXTENSIONS)
        }
        self.max_size = max_size if max_size is not None else settings.MAX_UPLOAD_SIZE

    def validate(self, original_name: str, content: bytes) -> None:
        field_errors = {}
        ext = os.path.splitext(original_name or "")[1].lstrip(".").lower()
        if self.allowed_extensions and ext not in self.allowed_extensions:
            field_errors["file"] = [
                f"File type '.{ext}' is not allowed" if ext else "File has no extension"
            ]
        if not content:
            field_errors.setdefault("file", []).append("File is empty")
        elif len(content) > self.max_size:
            field_errors.setdefault("file", []).append(
                f"File exceeds maximum size of {self.max_size} bytes"
            )
        if field_errors:
            raise ValidationError(f"Invalid upload '{original_name}'", field_errors)

    def save(
        self,
        original_name: str,
        content: bytes,
        mime_type: Optional[str] = None,
        owner: Optional[str] = None,
    ) -> StoredFile:
        self.validate(original_name, content)

        target = self.root / generate_unique_filename(original_name, prefix=owner)
        try:
            self.root.mkdir(mode=DIR_PERMISSIONS, parents=True, exist_ok=True)
            target.write_bytes(content)
        except OSError as e:
            raise StorageError(f"Could not store '{original_name}': {e}", path=str(target)) from e

        logger.info(
            "Stored uploaded file",
            extra={"path": str(target), "size": len(content), "mime_type": mime_type},
        )
        return StoredFile(
            path=str(target),
            original_name=original_name,
            mime_type=mime_type or "application/octet-stream",
            size=len(content),
        )

    def delete(self, path: Optional[str]) -> bool:
        """
        Remove a stored file. Missing files and OS errors are logged and
        reported as ``False``; deletion never raises.
        """
        if not path:
            return False

        target = Path(path)
        try:
            target.unlink()
        except FileNotFoundError:
            logger.info("Stored file already missing", extra={"path": path})
            return False
        except OSError as e:
            logger.warning(f"Could not delete stored file: {e}", extra={"path": path})
            return False

        logger.info("Deleted stored file", extra={"path": path})
        return True
