"""Endpoints for browsing and curating uploaded modlists."""

import logging

from fastapi import APIRouter, Depends
from sqlmodel import Session

from wabba_server.database import get_session
from wabba_server.errors import UserError
from wabba_server.routers.deps import get_modlist_or_404, http_error
from wabba_server.schemas.catalog import (
    AssociatedModOut,
    ModlistDetail,
    ModlistOut,
    RenameRequest,
)
from wabba_server.services.associations import list_for_modlist
from wabba_server.services.modlist_catalog import (
    ModlistSummary,
    list_modlists,
    rename_modlist,
    summarize,
    toggle_muted,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/modlists", tags=["modlists"])


def _to_out(summary: ModlistSummary) -> ModlistOut:
    modlist = summary.modlist
    return ModlistOut(
        id=modlist.id,  # type: ignore[arg-type]
        filename=modlist.filename,
        name=modlist.name,
        version=modlist.version,
        size=modlist.size,
        xxhash64=modlist.xxhash64,
        available=modlist.available,
        muted=modlist.muted,
        status=summary.status,
        mods_total=summary.mods_total,
        mods_available=summary.mods_available,
        created_at=modlist.created_at,
    )


@router.get("/", response_model=list[ModlistOut])
async def list_active(session: Session = Depends(get_session)) -> list[ModlistOut]:
    """List modlists that are not muted, with their readiness."""
    return [_to_out(summarize(session, m)) for m in list_modlists(session, muted=False)]


@router.get("/muted", response_model=list[ModlistOut])
async def list_muted(session: Session = Depends(get_session)) -> list[ModlistOut]:
    return [_to_out(summarize(session, m)) for m in list_modlists(session, muted=True)]


@router.get("/{modlist_id}", response_model=ModlistDetail)
async def modlist_detail(
    modlist_id: int,
    session: Session = Depends(get_session),
) -> ModlistDetail:
    """Return a modlist with every mod its manifest declared."""
    modlist = get_modlist_or_404(modlist_id, session)
    summary = summarize(session, modlist)
    mods = []
    for assoc, mod in list_for_modlist(session, modlist_id):
        source = assoc.archive_source
        mods.append(
            AssociatedModOut(
                mod_id=mod.id,  # type: ignore[arg-type]
                filename=assoc.filename,
                name=assoc.name,
                version=assoc.version,
                source_kind=source.kind,
                requires_download=source.requires_download(),
                xxhash64=mod.xxhash64,
                size=mod.size,
                state=mod.state,
                disk_filename=mod.disk_filename,
            )
        )
    return ModlistDetail(
        **_to_out(summary).model_dump(),
        missing_files=summary.missing_files,
        mods=mods,
    )


@router.post("/{modlist_id}/toggle-muted", response_model=ModlistOut)
async def toggle_modlist_muted(
    modlist_id: int,
    session: Session = Depends(get_session),
) -> ModlistOut:
    modlist = get_modlist_or_404(modlist_id, session)
    toggle_muted(session, modlist)
    return _to_out(summarize(session, modlist))


@router.post("/{modlist_id}/rename", response_model=ModlistOut)
async def rename(
    modlist_id: int,
    data: RenameRequest,
    session: Session = Depends(get_session),
) -> ModlistOut:
    """Change a modlist's display name."""
    modlist = get_modlist_or_404(modlist_id, session)
    try:
        rename_modlist(session, modlist, data.name)
    except UserError as exc:
        raise http_error(exc) from exc
    logger.info("Renamed modlist %s to %r", modlist_id, modlist.name)
    return _to_out(summarize(session, modlist))
