"""Links between a modlist and the mods its manifest declares."""

from __future__ import annotations

import logging

from sqlmodel import Session, col, select

from wabba_server.models.association import ModAssociation
from wabba_server.models.mod import Mod
from wabba_server.protocol.manifest import ManifestArchive

logger = logging.getLogger(__name__)


def get_association(session: Session, modlist_id: int, mod_id: int) -> ModAssociation | None:
    return session.get(ModAssociation, (modlist_id, mod_id))


def upsert_association(
    session: Session,
    modlist_id: int,
    mod_id: int,
    archive: ManifestArchive,
) -> tuple[ModAssociation, bool]:
    """Create or overwrite the declaration of *mod_id* within *modlist_id*.

    Returns ``(association, created)``.  Does not commit.
    """
    assoc = get_association(session, modlist_id, mod_id)
    created = assoc is None
    if assoc is None:
        assoc = ModAssociation(modlist_id=modlist_id, mod_id=mod_id, filename=archive.filename)
    assoc.filename = archive.filename
    assoc.name = archive.display_name()
    assoc.version = archive.display_version()
    assoc.set_source(archive.source)
    session.add(assoc)
    session.flush()
    return assoc, created


def list_for_modlist(session: Session, modlist_id: int) -> list[tuple[ModAssociation, Mod]]:
    """Return ``(association, mod)`` pairs for a modlist, ordered by declared filename."""
    rows = session.exec(
        select(ModAssociation, Mod)
        .join(Mod, col(ModAssociation.mod_id) == col(Mod.id))
        .where(ModAssociation.modlist_id == modlist_id)
        .order_by(col(ModAssociation.filename))
    ).all()
    return [(assoc, mod) for assoc, mod in rows]
