"""Check a download directory against the archives a manifest requires."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from wabba_server.protocol.manifest import ModlistManifest

logger = logging.getLogger(__name__)

META_SUFFIX = ".meta"


@dataclass
class FileComparison:
    missing_files: list[str] = field(default_factory=list)
    satisfied_files: list[str] = field(default_factory=list)
    extraneous_files: list[str] = field(default_factory=list)


def compare_file_lists(required_files: list[str], present_files: list[str]) -> FileComparison:
    """Split *required_files* into missing and satisfied; collect unrequired *present_files*.

    Input order is preserved in every list.
    """
    required = set(required_files)
    present = set(present_files)
    return FileComparison(
        missing_files=[f for f in required_files if f not in present],
        satisfied_files=[f for f in required_files if f in present],
        extraneous_files=[f for f in present_files if f not in required],
    )


def list_download_dir(directory: Path) -> list[str]:
    """Names of the entries in *directory*, without ``.meta`` sidecars."""
    return sorted(p.name for p in directory.iterdir() if not p.name.endswith(META_SUFFIX))


def check_download_dir(manifest: ModlistManifest, directory: Path) -> FileComparison:
    unknown = manifest.files_from_unknown_downloaders()
    if unknown:
        logger.warning(
            "Found %d file(s) with unknown downloaders, results may be incomplete: %s",
            len(unknown),
            unknown,
        )
    result = compare_file_lists(manifest.required_files(), list_download_dir(directory))
    logger.info(
        "%s %s: %d missing, %d satisfied, %d extraneous",
        manifest.name,
        manifest.version,
        len(result.missing_files),
        len(result.satisfied_files),
        len(result.extraneous_files),
    )
    return result
