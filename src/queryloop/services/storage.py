"""Object storage for question and answer attachments.

Blobs are addressed by ``(bucket, path)``. ``LocalObjectStore`` keeps them on
a filesystem volume under ``<root>/<bucket>/<path>``.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from pathlib import Path, PurePosixPath
from typing import Protocol

from queryloop.core.settings import settings
from queryloop.exceptions import ConflictError, StorageError, ValidationError

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")


class ObjectStore(Protocol):
    """Blob store used by the attachment and cascade services."""

    def upload(self, bucket: str, path: str, data: bytes) -> str:
        """Store ``data`` under a new path and return it.

        Raises:
            ConflictError: If a blob already exists at ``path``.
        """
        ...

    def remove(self, bucket: str, paths: Iterable[str]) -> int:
        """Remove blobs; missing ones are ignored. Returns the number removed."""
        ...

    def exists(self, bucket: str, path: str) -> bool:
        ...


def safe_file_name(filename: str) -> str:
    """Return ``filename`` stripped of directories with whitespace runs as ``_``."""
    name = PurePosixPath(filename.replace("\\", "/")).name
    name = _WHITESPACE.sub("_", name.strip())
    if not name or name in {".", ".."}:
        raise ValidationError("File name is empty", field="file")
    return name


def question_file_path(question_id: str, filename: str) -> str:
    return f"{question_id}/{safe_file_name(filename)}"


def answer_file_path(question_id: str, answer_id: str, filename: str) -> str:
    return f"{question_id}/answers/{answer_id}/{safe_file_name(filename)}"


def validate_attachment(filename: str, data: bytes) -> None:
    """Reject empty, oversized and blocked file types.

    Raises:
        ValidationError: If the upload breaks one of the rules.
    """
    suffix = PurePosixPath(filename).suffix.lower()
    blocked = {ext.lower() for ext in settings.blocked_attachment_extensions}
    if suffix in blocked:
        raise ValidationError(
            f"File type '{suffix}' is not supported. Please convert it before uploading.",
            field="file",
        )
    if not data:
        raise ValidationError("Uploaded file is empty", field="file")
    if len(data) > settings.max_attachment_bytes:
        raise ValidationError(
            f"File exceeds the {settings.max_attachment_bytes} byte limit",
            field="file",
        )


class LocalObjectStore:
    """Filesystem-backed ``ObjectStore``."""

    def __init__(self, root: str | Path | None = None) -> None:
        self.root = Path(root or settings.storage_root).resolve()
        self.root.mkdir(parents=True, exist_ok=True)
        logger.info("LocalObjectStore initialized with root=%s", self.root)

    def _resolve(self, bucket: str, path: str) -> Path:
        bucket_root = (self.root / bucket).resolve()
        target = (bucket_root / path).resolve()
        if not path or not target.is_relative_to(bucket_root) or target == bucket_root:
            raise StorageError("Invalid object path", context={"bucket": bucket, "path": path})
        return target

    def upload(self, bucket: str, path: str, data: bytes) -> str:
        target = self._resolve(bucket, path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with target.open("xb") as handle:
                handle.write(data)
        except FileExistsError as err:
            raise ConflictError(
                "A file with this name is already attached",
                {"bucket": bucket, "path": path},
            ) from err
        except OSError as err:
            logger.error("Failed to store %s/%s: %s", bucket, path, err)
            raise StorageError(context={"bucket": bucket, "path": path}) from err
        logger.debug("Stored %d bytes at %s/%s", len(data), bucket, path)
        return path

    def remove(self, bucket: str, paths: Iterable[str]) -> int:
        removed = 0
        for path in paths:
            target = self._resolve(bucket, path)
            try:
                target.unlink()
            except FileNotFoundError:
                logger.debug("Blob already gone: %s/%s", bucket, path)
                continue
            except OSError as err:
                logger.error("Failed to remove %s/%s: %s", bucket, path, err)
                raise StorageError(context={"bucket": bucket, "path": path}) from err
            removed += 1
        return removed

    def exists(self, bucket: str, path: str) -> bool:
        return self._resolve(bucket, path).is_file()


_default_store: LocalObjectStore | None = None


def get_object_store() -> ObjectStore:
    """Return the process-wide store configured from settings."""
    global _default_store
    if _default_store is None:
        _default_store = LocalObjectStore()
    return _default_store
