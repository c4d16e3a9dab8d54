"""Registry of content-addressed mods.

A mod is identified by ``(xxhash64, size)``.  The same hash stored with two
different sizes means either a hash collision or a corrupted manifest, and is
refused rather than resolved by guessing.
"""

from __future__ import annotations

import logging

from sqlmodel import Session, col, select

from wabba_server.errors import ContentIntegrityError, ModHasDiskFilenameError
from wabba_server.models.association import ModAssociation
from wabba_server.models.mod import Mod
from wabba_server.models.modlist import Modlist

logger = logging.getLogger(__name__)


def get_mod(session: Session, mod_id: int) -> Mod | None:
    return session.get(Mod, mod_id)


def get_by_hash(session: Session, xxhash64: str) -> Mod | None:
    return session.exec(
        select(Mod).where(Mod.xxhash64 == xxhash64).order_by(col(Mod.id))
    ).first()


def get_by_hash_and_size(session: Session, xxhash64: str, size: int) -> Mod | None:
    return session.exec(
        select(Mod).where(Mod.xxhash64 == xxhash64, Mod.size == size)
    ).first()


def get_by_disk_filename(session: Session, disk_filename: str) -> Mod | None:
    return session.exec(select(Mod).where(Mod.disk_filename == disk_filename)).first()


def list_mods(session: Session) -> list[Mod]:
    return list(
        session.exec(select(Mod).order_by(col(Mod.disk_filename), col(Mod.id))).all()
    )


def list_unavailable(session: Session) -> list[Mod]:
    return list(
        session.exec(
            select(Mod).where(col(Mod.disk_filename).is_(None)).order_by(col(Mod.id))
        ).all()
    )


def check_size_consistency(session: Session, xxhash64: str, size: int) -> None:
    """Raise if *xxhash64* is already stored with a size other than *size*."""
    conflicting = session.exec(
        select(Mod).where(Mod.xxhash64 == xxhash64, Mod.size != size)
    ).first()
    if conflicting:
        logger.error(
            "Hash %s already stored as mod %s with size %d, refusing size %d",
            xxhash64,
            conflicting.id,
            conflicting.size,
            size,
        )
        raise ContentIntegrityError(xxhash64, conflicting.size, size)


def resolve_mod(session: Session, xxhash64: str, size: int) -> tuple[Mod, bool]:
    """Find the mod for ``(xxhash64, size)`` or stage a new unavailable one.

    Returns ``(mod, created)``.  Does not commit.
    """
    check_size_consistency(session, xxhash64, size)
    existing = get_by_hash_and_size(session, xxhash64, size)
    if existing:
        return existing, False
    mod = Mod(xxhash64=xxhash64, size=size)
    session.add(mod)
    session.flush()
    logger.info("Registered new mod %s (%s, %d bytes)", mod.id, xxhash64, size)
    return mod, True


def mark_available(session: Session, mod: Mod, disk_filename: str) -> Mod:
    """Record that the bytes for *mod* now live at *disk_filename*. Does not commit."""
    mod.disk_filename = disk_filename
    mod.lost_forever = False
    session.add(mod)
    return mod


def toggle_lost_forever(session: Session, mod: Mod) -> Mod:
    """Flip the lost-forever flag on an unavailable mod and commit.

    Raises:
        ModHasDiskFilenameError: If the mod's bytes are on disk.
    """
    if mod.disk_filename is not None:
        raise ModHasDiskFilenameError(mod.id)
    mod.lost_forever = not mod.lost_forever
    session.add(mod)
    session.commit()
    session.refresh(mod)
    logger.info("Mod %s lost_forever set to %s", mod.id, mod.lost_forever)
    return mod


def associated_modlists(
    session: Session, mod_id: int
) -> list[tuple[Modlist, ModAssociation]]:
    """Return every modlist requiring *mod_id*, with its declaration, by modlist name."""
    rows = session.exec(
        select(Modlist, ModAssociation)
        .join(ModAssociation, col(ModAssociation.modlist_id) == col(Modlist.id))
        .where(ModAssociation.mod_id == mod_id)
        .order_by(col(Modlist.name), col(Modlist.id))
    ).all()
    return [(modlist, assoc) for modlist, assoc in rows]
