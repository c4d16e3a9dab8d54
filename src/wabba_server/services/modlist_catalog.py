"""Catalog of uploaded modlists and their derived readiness.

Readiness is never stored; it is computed from the availability of the
mods each modlist's manifest declared:

* ``ready`` -- no associated mods, or every required one is available
* ``uninstallable`` -- at least one associated mod is lost forever
* ``missing_files`` -- otherwise

Mods declared through a source that ships with the base game
(``GameFileSourceDownloader``) are never uploaded and so never count as
missing.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import StrEnum

from sqlmodel import Session, col, select

from wabba_server.errors import UserError
from wabba_server.models.association import ModAssociation
from wabba_server.models.mod import Mod
from wabba_server.models.modlist import Modlist
from wabba_server.services.associations import list_for_modlist

logger = logging.getLogger(__name__)


class ModlistStatus(StrEnum):
    ready = "ready"
    missing_files = "missing_files"
    uninstallable = "uninstallable"


@dataclass
class ModlistSummary:
    modlist: Modlist
    status: ModlistStatus
    mods_total: int = 0
    mods_available: int = 0
    missing_files: list[str] = field(default_factory=list)


def get_modlist(session: Session, modlist_id: int) -> Modlist | None:
    return session.get(Modlist, modlist_id)


def get_by_filename(session: Session, filename: str) -> Modlist | None:
    return session.exec(select(Modlist).where(Modlist.filename == filename)).first()


def get_by_hash(session: Session, xxhash64: str) -> Modlist | None:
    return session.exec(
        select(Modlist).where(Modlist.xxhash64 == xxhash64).order_by(col(Modlist.id))
    ).first()


def list_modlists(session: Session, *, muted: bool | None = False) -> list[Modlist]:
    """List modlists by name then newest version; ``muted=None`` returns all."""
    stmt = select(Modlist)
    if muted is not None:
        stmt = stmt.where(Modlist.muted == muted)
    return list(
        session.exec(stmt.order_by(col(Modlist.name), col(Modlist.version).desc())).all()
    )


def compute_status(rows: list[tuple[ModAssociation, Mod]]) -> ModlistStatus:
    if any(mod.lost_forever for _, mod in rows):
        return ModlistStatus.uninstallable
    for assoc, mod in rows:
        if not mod.is_available and assoc.archive_source.requires_download():
            return ModlistStatus.missing_files
    return ModlistStatus.ready


def summarize(session: Session, modlist: Modlist) -> ModlistSummary:
    rows = list_for_modlist(session, modlist.id)  # type: ignore[arg-type]
    missing = [
        assoc.filename
        for assoc, mod in rows
        if not mod.is_available and assoc.archive_source.requires_download()
    ]
    return ModlistSummary(
        modlist=modlist,
        status=compute_status(rows),
        mods_total=len(rows),
        mods_available=sum(1 for _, mod in rows if mod.is_available),
        missing_files=missing,
    )


def toggle_muted(session: Session, modlist: Modlist) -> Modlist:
    modlist.muted = not modlist.muted
    session.add(modlist)
    session.commit()
    session.refresh(modlist)
    logger.info("Modlist %s muted set to %s", modlist.id, modlist.muted)
    return modlist


def rename_modlist(session: Session, modlist: Modlist, name: str) -> Modlist:
    """Change the display name.  The filename, which is the identity, is untouched."""
    name = name.strip()
    if not name:
        raise UserError("Modlist name must not be empty")
    modlist.name = name
    session.add(modlist)
    session.commit()
    session.refresh(modlist)
    return modlist
