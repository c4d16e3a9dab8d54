"""Reconciliation scan of the data directory against the catalog.

Every ``.wabbajack`` file under ``Modlists/`` and every file under
``Downloads/`` (except ``.meta`` sidecars, directories and leftover upload
temp files) is hashed and fed through the normal ingest path.  Content that
is already stored under another name is skipped.  Files are visited in
sorted order, so re-running a scan over an unchanged directory yields the
same catalog.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path

from sqlmodel import Session

from wabba_server.errors import CatalogError, DuplicateContentError
from wabba_server.hashing import compute_hash
from wabba_server.protocol.manifest import load_manifest
from wabba_server.services.ingest import ingest_content, ingest_package
from wabba_server.storage import UPLOAD_TEMP_PREFIX, UPLOAD_TEMP_SUFFIX

logger = logging.getLogger(__name__)

MODLIST_SUFFIX = ".wabbajack"
META_SUFFIX = ".meta"


class BootstrapScope(StrEnum):
    all = "all"
    modlists = "modlists"
    mods = "mods"


@dataclass
class BootstrapReport:
    ingested: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)

    def merge(self, other: BootstrapReport) -> BootstrapReport:
        self.ingested.extend(other.ingested)
        self.skipped.extend(other.skipped)
        self.failed.update(other.failed)
        return self


def _is_upload_temp(path: Path) -> bool:
    return path.name.startswith(UPLOAD_TEMP_PREFIX) and path.suffix == UPLOAD_TEMP_SUFFIX


def _sorted_entries(directory: Path) -> list[Path]:
    if not directory.is_dir():
        logger.warning("Bootstrap directory does not exist: %s", directory)
        return []
    return sorted(directory.iterdir(), key=lambda p: p.name)


def bootstrap_modlists(session: Session, directory: Path) -> BootstrapReport:
    report = BootstrapReport()
    for path in _sorted_entries(directory):
        if not path.is_file() or path.suffix.lower() != MODLIST_SUFFIX:
            logger.info("Skipping non-wabbajack file: %s", path.name)
            report.skipped.append(path.name)
            continue
        logger.info("Processing modlist file: %s", path.name)
        try:
            manifest = load_manifest(path)
            ingest_package(session, path.name, compute_hash(path), path.stat().st_size, manifest)
        except DuplicateContentError as exc:
            logger.warning("Skipping modlist %s: %s", path.name, exc)
            report.skipped.append(path.name)
            continue
        except (CatalogError, OSError) as exc:
            logger.error("Failed to bootstrap modlist %s: %s", path.name, exc)
            report.failed[path.name] = str(exc)
            continue
        report.ingested.append(path.name)
    return report


def bootstrap_mods(session: Session, directory: Path) -> BootstrapReport:
    report = BootstrapReport()
    for path in _sorted_entries(directory):
        if path.is_dir():
            logger.info("Skipping directory: %s", path.name)
            report.skipped.append(path.name)
            continue
        if path.suffix.lower() == META_SUFFIX or _is_upload_temp(path):
            logger.info("Skipping %s", path.name)
            report.skipped.append(path.name)
            continue
        logger.info("Processing mod file: %s", path.name)
        try:
            ingest_content(session, path.name, compute_hash(path), path.stat().st_size)
        except DuplicateContentError as exc:
            logger.warning("Skipping mod %s: %s", path.name, exc)
            report.skipped.append(path.name)
            continue
        except (CatalogError, OSError) as exc:
            logger.error("Failed to bootstrap mod %s: %s", path.name, exc)
            report.failed[path.name] = str(exc)
            continue
        report.ingested.append(path.name)
    return report


def run_bootstrap(
    session: Session,
    scope: BootstrapScope,
    modlist_dir: Path,
    mod_dir: Path,
) -> BootstrapReport:
    """Scan the requested directories. Modlists go first so their mods exist to be matched."""
    report = BootstrapReport()
    if scope in (BootstrapScope.all, BootstrapScope.modlists):
        report.merge(bootstrap_modlists(session, modlist_dir))
    if scope in (BootstrapScope.all, BootstrapScope.mods):
        report.merge(bootstrap_mods(session, mod_dir))
    logger.info(
        "Bootstrap (%s) complete: %d ingested, %d skipped, %d failed",
        scope,
        len(report.ingested),
        len(report.skipped),
        len(report.failed),
    )
    return report
