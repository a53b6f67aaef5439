"""
Profilebook Backend — Image Storage Service
============================================

What:  Writes uploaded images into per-profile directories and removes
       images that were replaced or deleted.
Why:   Centralizes all filesystem operations so routes never build paths
       from client input themselves.
How:   Uploads are written to a hidden temp file and then published under
       their generated name with an atomic hard link.
Who:   Called by the upload, post and delete routes, and by maintenance.

Directory Structure:
    <storage_root>/
    └── images/
        └── 42/                               ← profile id
            ├── image_1718000000000.jpg       ← <field>_<epoch ms><ext>
            ├── image_1718000000000-1.jpg     ← same millisecond, same field
            └── .upload-3f2a….part            ← in-flight write (never referenced)

Consistency Model:
    The database and the filesystem are not covered by one transaction, so
    every route orders its steps as write-new → commit → delete-old:
    - A failure before commit discards the freshly written file.
    - A failure after commit can at worst leak the superseded file, which the
      reconciliation pass in profilebook.maintenance removes later.
    A row never references a file that was not fully written.
"""

import logging
import os
import shutil
import time
import uuid
from pathlib import Path
from typing import Iterator, List, NamedTuple, Optional, Tuple, Union

import aiofiles

from profilebook.config import settings
from profilebook.exceptions import FileStorageError, ValidationError

logger = logging.getLogger(__name__)

TMP_PREFIX = ".upload-"
TMP_SUFFIX = ".part"

# Upper bound on "-N" suffixes tried when names collide within one millisecond
MAX_NAME_ATTEMPTS = 100


class StoredFile(NamedTuple):
    """A published upload: generated filename, absolute path, byte count."""

    filename: str
    path: Path
    size: int


def current_millis() -> int:
    """Wall-clock time as epoch milliseconds."""
    return time.time_ns() // 1_000_000


class StorageService:
    """
    Manages the per-profile image directories.

    Lifecycle of an uploaded file:
        1. Route receives multipart upload → store_upload()
        2. Size check (non-empty, under max_file_size)
        3. Profile directory created if absent (idempotent, race-free)
        4. Content written to a hidden temp file in that directory
        5. Temp file hard-linked to <field>_<ms><ext>; on collision a
           numeric suffix is added and the link retried
        6. Temp file unlinked; StoredFile returned to the route
    """

    def __init__(self, storage_root: Optional[str] = None):
        self.storage_root = Path(storage_root or settings.storage_root).resolve()
        self.images_root = self.storage_root / "images"
        self.images_root.mkdir(parents=True, exist_ok=True)
        logger.info("StorageService initialized with images_root=%s", self.images_root)

    # ── Paths ─────────────────────────────────────────────────────────────

    def profile_dir(self, profile_id: Union[int, str]) -> Path:
        """
        Directory holding every image of one profile.

        Only integer ids are accepted, so the id can never escape images_root.
        """
        try:
            pid = int(profile_id)
        except (TypeError, ValueError):
            raise ValidationError(
                message="Profile id must be an integer",
                field="id",
                context={"value": str(profile_id)},
            )
        if pid < 0:
            raise ValidationError(message="Profile id must be positive", field="id")
        return self.images_root / str(pid)

    def ensure_profile_dir(self, profile_id: Union[int, str]) -> Path:
        directory = self.profile_dir(profile_id)
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error("Failed to create directory %s: %s", directory, str(e))
            raise FileStorageError(
                message="Failed to prepare the upload directory.",
                context={"path": str(directory), "os_error": str(e)},
            )
        return directory

    def _resolve_existing_name(self, profile_id: Union[int, str], name: Optional[str]) -> Optional[Path]:
        """Path of a stored file, or None when the name cannot refer to one."""
        if not name or name in {".", ".."}:
            return None
        if "/" in name or "\\" in name or name.startswith("."):
            logger.warning("Ignoring suspicious filename %r for profile %s", name, profile_id)
            return None
        return self.profile_dir(profile_id) / name

    # ── Validation ────────────────────────────────────────────────────────

    @staticmethod
    def generate_filename(field: str, original_name: Optional[str], now_ms: Optional[int] = None) -> str:
        """<field>_<epoch ms><ext>, e.g. image_1718000000000.jpg"""
        ext = Path(original_name or "").suffix.lower()
        stamp = now_ms if now_ms is not None else current_millis()
        return f"{field}_{stamp}{ext}"

    def validate_size(self, content: bytes) -> None:
        if not content:
            raise ValidationError(message="Uploaded file is empty", field="image")
        if len(content) > settings.max_file_size:
            max_mb = settings.max_file_size / (1024 * 1024)
            raise ValidationError(
                message=f"Uploaded file is too large (max {max_mb:.0f}MB)",
                field="image",
                context={"size": len(content), "max_size": settings.max_file_size},
            )

    # ── Writing ───────────────────────────────────────────────────────────

    @staticmethod
    def _candidate_names(filename: str) -> Iterator[str]:
        stem, ext = os.path.splitext(filename)
        yield filename
        for n in range(1, MAX_NAME_ATTEMPTS):
            yield f"{stem}-{n}{ext}"

    def _publish(self, tmp_path: Path, directory: Path, filename: str) -> Path:
        # os.link fails with FileExistsError instead of replacing the target,
        # so two uploads can never claim the same name.
        for candidate in self._candidate_names(filename):
            target = directory / candidate
            try:
                os.link(tmp_path, target)
                return target
            except FileExistsError:
                continue
        raise FileStorageError(
            message="Could not find a free filename for the upload.",
            context={"directory": str(directory), "filename": filename},
        )

    async def store_upload(
        self,
        profile_id: Union[int, str],
        field: str,
        original_name: Optional[str],
        content: bytes,
    ) -> StoredFile:
        """
        Validate and write one uploaded file into the profile's directory.

        Returns:
            StoredFile with the generated (possibly suffixed) filename.

        Raises:
            ValidationError: empty or oversized content, invalid profile id
            FileStorageError: directory creation or write failed
        """
        self.validate_size(content)
        directory = self.ensure_profile_dir(profile_id)
        filename = self.generate_filename(field, original_name)
        tmp_path = directory / f"{TMP_PREFIX}{uuid.uuid4().hex}{TMP_SUFFIX}"

        try:
            async with aiofiles.open(tmp_path, "wb") as f:
                await f.write(content)
            target = self._publish(tmp_path, directory, filename)
        except OSError as e:
            logger.error("Failed to store upload in %s: %s", directory, str(e))
            raise FileStorageError(
                message="Failed to save uploaded image. Please try again.",
                context={"directory": str(directory), "os_error": str(e)},
            )
        finally:
            try:
                tmp_path.unlink(missing_ok=True)
            except OSError as e:
                logger.warning("Could not remove temp file %s: %s", tmp_path.name, str(e))

        logger.info("File stored: %s/%s (%d bytes)", directory.name, target.name, len(content))
        return StoredFile(filename=target.name, path=target, size=len(content))

    # ── Removal (best-effort) ─────────────────────────────────────────────

    async def remove_file(self, profile_id: Union[int, str], name: Optional[str]) -> bool:
        """
        Delete a superseded image.

        Missing files and empty names are a no-op. Errors are logged and
        never raised: by the time this runs the database change is committed.
        Returns True when a file was removed.
        """
        try:
            path = self._resolve_existing_name(profile_id, name)
        except ValidationError:
            logger.warning("Cleanup skipped: invalid profile id %r", profile_id)
            return False
        if path is None:
            return False
        try:
            if not path.is_file():
                logger.debug("Cleanup: file already gone: %s", path)
                return False
            path.unlink()
            logger.info("%s was deleted", path)
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.warning("Failed to delete %s: %s", path, str(e))
            return False

    async def discard(self, stored: StoredFile) -> None:
        """Remove a freshly written upload whose database write failed."""
        try:
            stored.path.unlink(missing_ok=True)
            logger.info("Discarded unreferenced upload %s", stored.filename)
        except OSError as e:
            logger.warning("Failed to discard upload %s: %s", stored.path, str(e))

    async def remove_profile_dir(self, profile_id: Union[int, str]) -> bool:
        """Recursively delete a profile's image directory. Returns True if it existed."""
        try:
            directory = self.profile_dir(profile_id)
        except ValidationError:
            return False
        if not directory.exists():
            return False

        try:
            shutil.rmtree(directory)
        except OSError as e:
            logger.warning("Failed to remove image directory %s: %s", directory, str(e))
            return False
        logger.info("Removed image directory %s", directory)
        return True

    # ── Inspection ────────────────────────────────────────────────────────

    def list_files(self, profile_id: Union[int, str]) -> List[str]:
        directory = self.profile_dir(profile_id)
        if not directory.is_dir():
            return []
        return sorted(entry.name for entry in directory.iterdir() if entry.is_file())

    def iter_profile_dirs(self) -> Iterator[Tuple[int, Path]]:
        """Yields (profile id, directory) for every numeric directory under images_root."""
        if not self.images_root.is_dir():
            return
        for entry in sorted(self.images_root.iterdir()):
            if entry.is_dir() and entry.name.isdigit():
                yield int(entry.name), entry


# ── Singleton Instance ────────────────────────────────────────────────────
storage_service = StorageService()
