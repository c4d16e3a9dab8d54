"""Pre-upload decision: should the server accept the bytes for a file?

The decision is taken before any byte is read, from the hash the client
claims (``If-None-Match``), the requested filename, whether a file already
sits at the destination path, and what the catalog knows under that name
and that hash.  Nothing here mutates state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path

from sqlmodel import Session

from wabba_server.errors import CorruptedStateError, NeedsBootstrapError, UserError
from wabba_server.models.mod import Mod
from wabba_server.models.modlist import Modlist
from wabba_server.services import content_registry, modlist_catalog

logger = logging.getLogger(__name__)


class UploadOutcome(StrEnum):
    not_modified = "not_modified"
    accept_upload = "accept_upload"
    reject_user_error = "reject_user_error"
    reject_corrupted_state = "reject_corrupted_state"
    reject_needs_bootstrap = "reject_needs_bootstrap"


_REJECTION_ERRORS = {
    UploadOutcome.reject_user_error: UserError,
    UploadOutcome.reject_corrupted_state: CorruptedStateError,
    UploadOutcome.reject_needs_bootstrap: NeedsBootstrapError,
}


@dataclass(frozen=True)
class UploadDecision:
    outcome: UploadOutcome
    reason: str = ""

    @property
    def accepted(self) -> bool:
        return self.outcome == UploadOutcome.accept_upload

    def raise_for_rejection(self) -> None:
        """Raise the matching :mod:`wabba_server.errors` class for a rejection."""
        error_cls = _REJECTION_ERRORS.get(self.outcome)
        if error_cls is not None:
            raise error_cls(self.reason)


@dataclass(frozen=True)
class CatalogRecord:
    """What the validator needs to know about a stored row.

    ``filename`` is ``None`` for content that was declared but never
    materialised on disk.
    """

    filename: str | None
    xxhash64: str
    available: bool

    @classmethod
    def from_modlist(cls, modlist: Modlist | None) -> CatalogRecord | None:
        if modlist is None:
            return None
        return cls(filename=modlist.filename, xxhash64=modlist.xxhash64, available=modlist.available)

    @classmethod
    def from_mod(cls, mod: Mod | None) -> CatalogRecord | None:
        if mod is None:
            return None
        return cls(filename=mod.disk_filename, xxhash64=mod.xxhash64, available=mod.is_available)


def decide_upload(
    claimed_hash: str | None,
    filename: str,
    exists_on_disk: bool,
    by_filename: CatalogRecord | None,
    by_hash: CatalogRecord | None,
) -> UploadDecision:
    """Classify an upload request into one of the five outcomes."""
    if not claimed_hash:
        return UploadDecision(UploadOutcome.reject_user_error, "hash header required")

    if by_filename is not None and by_filename.xxhash64 != claimed_hash:
        return UploadDecision(
            UploadOutcome.reject_user_error,
            f"'{filename}' is already stored with a different hash",
        )

    if by_hash is not None:
        if by_hash.available:
            if by_hash.filename == filename:
                return UploadDecision(UploadOutcome.not_modified)
            return UploadDecision(
                UploadOutcome.reject_corrupted_state,
                f"Content hash already stored under a different filename ({by_hash.filename})",
            )
        if exists_on_disk:
            return UploadDecision(
                UploadOutcome.reject_needs_bootstrap,
                f"'{filename}' is marked unavailable but exists on disk",
            )
        if by_hash.filename is not None and by_hash.filename != filename:
            return UploadDecision(
                UploadOutcome.reject_corrupted_state,
                f"Content hash is recorded under a different filename ({by_hash.filename})",
            )
        return UploadDecision(UploadOutcome.accept_upload)

    if exists_on_disk:
        return UploadDecision(
            UploadOutcome.reject_needs_bootstrap,
            f"'{filename}' exists on disk but is not in the catalog",
        )
    return UploadDecision(UploadOutcome.accept_upload)


def _log_decision(kind: str, filename: str, decision: UploadDecision) -> UploadDecision:
    if decision.outcome in (UploadOutcome.accept_upload, UploadOutcome.not_modified):
        logger.info("Upload of %s %s: %s", kind, filename, decision.outcome)
    elif decision.outcome == UploadOutcome.reject_user_error:
        logger.info("Upload of %s %s rejected: %s", kind, filename, decision.reason)
    else:
        logger.warning(
            "Upload of %s %s rejected (%s): %s", kind, filename, decision.outcome, decision.reason
        )
    return decision


def validate_modlist_upload(
    session: Session,
    claimed_hash: str | None,
    filename: str,
    target_path: Path,
) -> UploadDecision:
    by_filename = CatalogRecord.from_modlist(modlist_catalog.get_by_filename(session, filename))
    by_hash = (
        CatalogRecord.from_modlist(modlist_catalog.get_by_hash(session, claimed_hash))
        if claimed_hash
        else None
    )
    decision = decide_upload(claimed_hash, filename, target_path.exists(), by_filename, by_hash)
    return _log_decision("modlist", filename, decision)


def validate_mod_upload(
    session: Session,
    claimed_hash: str | None,
    filename: str,
    target_path: Path,
) -> UploadDecision:
    by_filename = CatalogRecord.from_mod(content_registry.get_by_disk_filename(session, filename))
    by_hash = (
        CatalogRecord.from_mod(content_registry.get_by_hash(session, claimed_hash))
        if claimed_hash
        else None
    )
    decision = decide_upload(claimed_hash, filename, target_path.exists(), by_filename, by_hash)
    return _log_decision("mod", filename, decision)
