"""On-disk layout of the data directory and upload file handling.

Uploaded bytes always land in a temporary file inside the destination
directory first; only a hash-verified file is renamed into place.
"""

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import AsyncIterable
from pathlib import Path

from wabba_server.config import settings
from wabba_server.errors import StorageError, UserError

logger = logging.getLogger(__name__)

_PROGRESS_LOG_INTERVAL = 5  # seconds between progress log lines

UPLOAD_TEMP_PREFIX = "upload_"
UPLOAD_TEMP_SUFFIX = ".tmp"


def modlist_dir() -> Path:
    path = settings.modlist_dir
    path.mkdir(parents=True, exist_ok=True)
    return path


def mod_dir() -> Path:
    path = settings.mod_dir
    path.mkdir(parents=True, exist_ok=True)
    return path


def sanitize_filename(requested: str) -> str:
    """Reduce a client-supplied name to a bare filename.

    Raises:
        UserError: If nothing usable remains.
    """
    name = Path(requested.replace("\\", "/")).name.strip()
    if not name or name in {".", ".."}:
        raise UserError(f"Invalid filename: {requested!r}")
    return name


def determine_final_filename(requested: str, hash_b64url: str, directory: Path) -> str:
    """Pick a free name in *directory*, preferring *requested*.

    Collisions get the hash appended to the stem, then an increasing counter:
    ``foo.7z`` -> ``foo-<hash>.7z`` -> ``foo-<hash>_1.7z``.
    """
    if not (directory / requested).exists():
        return requested

    stem, dot, ext = requested.rpartition(".")
    if not dot or not stem:
        stem, ext = requested, ""
    suffix = f".{ext}" if ext else ""

    candidate = f"{stem}-{hash_b64url}{suffix}"
    counter = 0
    while (directory / candidate).exists():
        counter += 1
        candidate = f"{stem}-{hash_b64url}_{counter}{suffix}"
    return candidate


async def stream_to_temp_file(directory: Path, chunks: AsyncIterable[bytes]) -> tuple[Path, int]:
    """Write *chunks* to a fresh temporary file in *directory*.

    Returns ``(temp_path, bytes_written)``.  The temporary file is removed if
    the stream fails.
    """
    temp_path = directory / f"{UPLOAD_TEMP_PREFIX}{uuid.uuid4().hex}{UPLOAD_TEMP_SUFFIX}"
    logger.info("Uploading to temp file %s", temp_path.name)

    total_written = 0
    last_log = time.monotonic()
    try:
        with open(temp_path, "xb") as f:
            async for chunk in chunks:
                f.write(chunk)
                total_written += len(chunk)
                now = time.monotonic()
                if now - last_log > _PROGRESS_LOG_INTERVAL:
                    last_log = now
                    logger.info("...%.2f MB written so far", total_written / 1024 / 1024)
    except OSError as exc:
        temp_path.unlink(missing_ok=True)
        raise StorageError(f"Failed to write upload to disk: {exc}") from exc
    except BaseException:
        temp_path.unlink(missing_ok=True)
        raise

    logger.info("Upload complete, %d bytes written", total_written)
    return temp_path, total_written


def promote(temp_path: Path, final_path: Path) -> Path:
    """Move a verified temporary file to its permanent name."""
    try:
        temp_path.rename(final_path)
    except OSError as exc:
        temp_path.unlink(missing_ok=True)
        raise StorageError(f"Failed to move file to final location: {exc}") from exc
    logger.info("File moved to final location: %s", final_path.name)
    return final_path
