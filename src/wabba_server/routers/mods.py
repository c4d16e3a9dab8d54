"""Endpoints for the content-addressed mod registry."""

from fastapi import APIRouter, Depends
from sqlmodel import Session

from wabba_server.database import get_session
from wabba_server.errors import ModHasDiskFilenameError
from wabba_server.models.mod import Mod
from wabba_server.routers.deps import get_mod_or_404, http_error
from wabba_server.schemas.catalog import ModDeclarationOut, ModDetail, ModOut
from wabba_server.services.content_registry import (
    associated_modlists,
    list_mods,
    list_unavailable,
    toggle_lost_forever,
)

router = APIRouter(prefix="/mods", tags=["mods"])


def _to_out(mod: Mod) -> ModOut:
    return ModOut(
        id=mod.id,  # type: ignore[arg-type]
        xxhash64=mod.xxhash64,
        size=mod.size,
        disk_filename=mod.disk_filename,
        lost_forever=mod.lost_forever,
        state=mod.state,
        created_at=mod.created_at,
    )


@router.get("/", response_model=list[ModOut])
async def list_all(session: Session = Depends(get_session)) -> list[ModOut]:
    return [_to_out(m) for m in list_mods(session)]


@router.get("/unavailable", response_model=list[ModOut])
async def list_missing(session: Session = Depends(get_session)) -> list[ModOut]:
    """List mods that some modlist declares but nobody has uploaded."""
    return [_to_out(m) for m in list_unavailable(session)]


@router.get("/{mod_id}", response_model=ModDetail)
async def mod_detail(mod_id: int, session: Session = Depends(get_session)) -> ModDetail:
    """Return a mod with the name and source each modlist declared it under."""
    mod = get_mod_or_404(mod_id, session)
    declarations = [
        ModDeclarationOut(
            modlist_id=modlist.id,  # type: ignore[arg-type]
            modlist_name=modlist.name,
            modlist_version=modlist.version,
            filename=assoc.filename,
            name=assoc.name,
            version=assoc.version,
            source=assoc.archive_source.to_wire(),
        )
        for modlist, assoc in associated_modlists(session, mod_id)
    ]
    return ModDetail(**_to_out(mod).model_dump(), declarations=declarations)


@router.post("/{mod_id}/toggle-lost-forever", response_model=ModOut)
async def toggle_mod_lost_forever(
    mod_id: int,
    session: Session = Depends(get_session),
) -> ModOut:
    mod = get_mod_or_404(mod_id, session)
    try:
        toggle_lost_forever(session, mod)
    except ModHasDiskFilenameError as exc:
        raise http_error(exc) from exc
    return _to_out(mod)
