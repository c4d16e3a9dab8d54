"""Merge verified uploads into the catalog.

Each entry point is a single unit of work on the caller's session: every
change is committed together or, on any error, rolled back together.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session

from wabba_server.errors import DuplicateContentError, StorageError
from wabba_server.models.mod import Mod
from wabba_server.models.modlist import Modlist
from wabba_server.protocol.manifest import ModlistManifest
from wabba_server.services import associations, content_registry, modlist_catalog

logger = logging.getLogger(__name__)


@dataclass
class PackageIngestResult:
    modlist: Modlist
    created: bool
    mods_created: int = 0
    associations_created: int = 0
    associations_updated: int = 0
    not_required: int = 0


@contextmanager
def _unit_of_work(session: Session, what: str) -> Iterator[None]:
    try:
        yield
        session.commit()
    except IntegrityError as exc:
        session.rollback()
        logger.warning("Uniqueness conflict while ingesting %s, another writer won", what)
        raise DuplicateContentError(f"{what} was registered concurrently") from exc
    except SQLAlchemyError as exc:
        session.rollback()
        logger.exception("Database failure while ingesting %s", what)
        raise StorageError(f"Database error while ingesting {what}: {exc}") from exc
    except BaseException:
        session.rollback()
        raise


def ingest_content(session: Session, name: str, xxhash64: str, size: int) -> Mod:
    """Record that the mod bytes for ``(xxhash64, size)`` are stored as *name*.

    Raises:
        ContentIntegrityError: If *xxhash64* is known with a different size.
        DuplicateContentError: If the content is already stored under another
            name, or a concurrent ingest created the row first.
    """
    with _unit_of_work(session, f"mod {name}"):
        content_registry.check_size_consistency(session, xxhash64, size)
        mod = content_registry.get_by_hash_and_size(session, xxhash64, size)
        if mod and mod.disk_filename is not None and mod.disk_filename != name:
            logger.warning(
                "Mod %s is already stored as %s, refusing second copy %s",
                mod.id,
                mod.disk_filename,
                name,
            )
            raise DuplicateContentError(
                f"Content of {name} is already stored as {mod.disk_filename}"
            )
        if mod:
            logger.info("Mod %s present in catalog, setting disk filename %s", mod.id, name)
            content_registry.mark_available(session, mod, name)
        else:
            logger.info("Mod %s not in catalog, creating it", name)
            mod = Mod(xxhash64=xxhash64, size=size, disk_filename=name)
            session.add(mod)
        session.flush()
    session.refresh(mod)
    return mod


def ingest_package(
    session: Session,
    name: str,
    xxhash64: str,
    size: int,
    manifest: ModlistManifest,
) -> PackageIngestResult:
    """Create or update the modlist stored as *name* and link every declared archive.

    Raises:
        ContentIntegrityError: If any declared archive reuses a known hash
            with a different size; nothing is written.
        DuplicateContentError: If the package is already stored under another
            filename, or a concurrent ingest created a row first.
    """
    with _unit_of_work(session, f"modlist {name}"):
        same_content = modlist_catalog.get_by_hash(session, xxhash64)
        if same_content and same_content.available and same_content.filename != name:
            logger.warning(
                "Modlist content already stored as %s, refusing second copy %s",
                same_content.filename,
                name,
            )
            raise DuplicateContentError(
                f"Content of {name} is already stored as {same_content.filename}"
            )
        modlist = modlist_catalog.get_by_filename(session, name)
        created = modlist is None
        if modlist is None:
            logger.info("Creating modlist entry %s", name)
            modlist = Modlist(
                filename=name,
                name=manifest.name,
                version=manifest.version,
                size=size,
                xxhash64=xxhash64,
                available=True,
                muted=False,
            )
        else:
            logger.info("Updating modlist entry %s (id %s)", name, modlist.id)
            modlist.name = manifest.name
            modlist.version = manifest.version
            modlist.size = size
            modlist.xxhash64 = xxhash64
            modlist.available = True
        session.add(modlist)
        session.flush()

        result = PackageIngestResult(modlist=modlist, created=created)
        for archive in manifest.archives:
            mod, mod_created = content_registry.resolve_mod(session, archive.hash, archive.size)
            _, assoc_created = associations.upsert_association(
                session,
                modlist.id,  # type: ignore[arg-type]
                mod.id,  # type: ignore[arg-type]
                archive,
            )
            result.mods_created += mod_created
            if assoc_created:
                result.associations_created += 1
            else:
                result.associations_updated += 1
            if not archive.requires_download():
                result.not_required += 1

    session.refresh(modlist)
    logger.info(
        "Ingested modlist %s %s: %d archive(s), %d new mod(s), %d not requiring download",
        modlist.name,
        modlist.version,
        len(manifest.archives),
        result.mods_created,
        result.not_required,
    )
    return result
