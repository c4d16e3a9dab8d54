"""Shared FastAPI dependencies used across routers."""

from fastapi import HTTPException
from sqlmodel import Session

from wabba_server.errors import CatalogError
from wabba_server.models.mod import Mod
from wabba_server.models.modlist import Modlist
from wabba_server.services.content_registry import get_mod
from wabba_server.services.modlist_catalog import get_modlist


def get_modlist_or_404(modlist_id: int, session: Session) -> Modlist:
    """Look up a modlist by id, raising 404 if not found."""
    modlist = get_modlist(session, modlist_id)
    if not modlist:
        raise HTTPException(404, f"Modlist {modlist_id} not found")
    return modlist


def get_mod_or_404(mod_id: int, session: Session) -> Mod:
    """Look up a mod by id, raising 404 if not found."""
    mod = get_mod(session, mod_id)
    if not mod:
        raise HTTPException(404, f"Mod {mod_id} not found")
    return mod


def http_error(exc: CatalogError) -> HTTPException:
    return HTTPException(exc.status_code, str(exc))
