"""Upload endpoints for modlist packages and mod archives.

Clients send the expected content hash in ``If-None-Match``.  The request is
classified before the body is read; accepted bodies are streamed to a
temporary file, verified against the claimed hash, moved into place and
ingested.
"""

import asyncio
import logging
from collections.abc import Callable
from pathlib import Path

from fastapi import APIRouter, Depends, Header, HTTPException, Request, Response
from sqlmodel import Session

from wabba_server import storage
from wabba_server.database import get_session
from wabba_server.errors import CatalogError, DuplicateContentError
from wabba_server.hashing import compute_hash, to_base64url
from wabba_server.protocol.manifest import load_manifest
from wabba_server.routers.deps import http_error
from wabba_server.schemas.catalog import UploadResult
from wabba_server.services.ingest import ingest_content, ingest_package
from wabba_server.services.upload_validation import (
    UploadDecision,
    UploadOutcome,
    validate_mod_upload,
    validate_modlist_upload,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/submit", tags=["uploads"])

Validator = Callable[[Session, str | None, str, Path], UploadDecision]


def _not_modified() -> Response:
    return Response(status_code=304)


async def _receive(
    request: Request,
    session: Session,
    directory: Path,
    requested: str,
    claimed_hash: str | None,
    validate: Validator,
) -> tuple[Path, int] | None:
    """Run the pre-upload check, then stream, verify and place the body.

    Returns ``(final_path, size)``, or ``None`` when the content is already
    stored under the requested name.
    """
    try:
        filename = storage.sanitize_filename(requested)
    except CatalogError as exc:
        raise http_error(exc) from exc

    decision = validate(session, claimed_hash, filename, directory / filename)
    if decision.outcome == UploadOutcome.not_modified:
        return None
    try:
        decision.raise_for_rejection()
        temp_path, size = await storage.stream_to_temp_file(directory, request.stream())
    except CatalogError as exc:
        raise http_error(exc) from exc

    try:
        actual_hash = await asyncio.to_thread(compute_hash, temp_path)
    except BaseException:
        temp_path.unlink(missing_ok=True)
        raise
    if actual_hash != claimed_hash:
        logger.warning(
            "Hash mismatch for %s: claimed %s, received %s", filename, claimed_hash, actual_hash
        )
        temp_path.unlink(missing_ok=True)
        raise HTTPException(400, f"Hash mismatch: expected {claimed_hash}, got {actual_hash}")

    final_name = storage.determine_final_filename(filename, to_base64url(actual_hash), directory)
    try:
        final_path = storage.promote(temp_path, directory / final_name)
    except CatalogError as exc:
        raise http_error(exc) from exc
    return final_path, size


@router.post("/modlist/{filename}", response_model=UploadResult, status_code=201)
async def submit_modlist(
    filename: str,
    request: Request,
    if_none_match: str | None = Header(default=None),
    session: Session = Depends(get_session),
) -> UploadResult | Response:
    """Upload a ``.wabbajack`` package and register every archive it declares."""
    received = await _receive(
        request,
        session,
        storage.modlist_dir(),
        filename,
        if_none_match,
        validate_modlist_upload,
    )
    if received is None:
        return _not_modified()
    path, size = received

    try:
        manifest = await asyncio.to_thread(load_manifest, path)
        result = ingest_package(session, path.name, if_none_match, size, manifest)  # type: ignore[arg-type]
    except DuplicateContentError:
        path.unlink(missing_ok=True)
        return _not_modified()
    except CatalogError as exc:
        logger.warning("Discarding modlist upload %s: %s", path.name, exc)
        path.unlink(missing_ok=True)
        raise http_error(exc) from exc
    except BaseException:
        path.unlink(missing_ok=True)
        raise

    modlist = result.modlist
    return UploadResult(
        kind="modlist",
        id=modlist.id,  # type: ignore[arg-type]
        filename=modlist.filename,
        xxhash64=modlist.xxhash64,
        size=modlist.size,
        mods_created=result.mods_created,
        associations_created=result.associations_created,
        associations_updated=result.associations_updated,
    )


@router.post("/mod/{filename}", response_model=UploadResult, status_code=201)
async def submit_mod(
    filename: str,
    request: Request,
    if_none_match: str | None = Header(default=None),
    session: Session = Depends(get_session),
) -> UploadResult | Response:
    """Upload a mod archive; its catalog entry becomes available."""
    received = await _receive(
        request,
        session,
        storage.mod_dir(),
        filename,
        if_none_match,
        validate_mod_upload,
    )
    if received is None:
        return _not_modified()
    path, size = received

    try:
        mod = ingest_content(session, path.name, if_none_match, size)  # type: ignore[arg-type]
    except DuplicateContentError:
        path.unlink(missing_ok=True)
        return _not_modified()
    except CatalogError as exc:
        logger.warning("Discarding mod upload %s: %s", path.name, exc)
        path.unlink(missing_ok=True)
        raise http_error(exc) from exc
    except BaseException:
        path.unlink(missing_ok=True)
        raise

    return UploadResult(
        kind="mod",
        id=mod.id,  # type: ignore[arg-type]
        filename=mod.disk_filename or path.name,
        xxhash64=mod.xxhash64,
        size=mod.size,
    )
