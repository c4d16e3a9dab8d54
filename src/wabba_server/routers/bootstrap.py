"""Endpoints that reconcile the catalog with the data directory."""

import logging

from fastapi import APIRouter, BackgroundTasks
from sqlmodel import Session

from wabba_server import storage
from wabba_server.database import engine
from wabba_server.schemas.catalog import BootstrapStarted
from wabba_server.services.bootstrap import BootstrapScope, run_bootstrap

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bootstrap", tags=["bootstrap"])


def _run_in_background(scope: BootstrapScope) -> None:
    try:
        with Session(engine) as session:
            run_bootstrap(session, scope, storage.modlist_dir(), storage.mod_dir())
    except Exception:
        logger.exception("Bootstrap (%s) aborted", scope)


def _start(scope: BootstrapScope, background_tasks: BackgroundTasks) -> BootstrapStarted:
    background_tasks.add_task(_run_in_background, scope)
    logger.info("Bootstrap (%s) scheduled", scope)
    return BootstrapStarted(scope=scope, message="Bootstrap started")


@router.post("/", response_model=BootstrapStarted, status_code=202)
async def bootstrap_all(background_tasks: BackgroundTasks) -> BootstrapStarted:
    """Scan both modlists and mods on disk, modlists first."""
    return _start(BootstrapScope.all, background_tasks)


@router.post("/modlists", response_model=BootstrapStarted, status_code=202)
async def bootstrap_modlists(background_tasks: BackgroundTasks) -> BootstrapStarted:
    return _start(BootstrapScope.modlists, background_tasks)


@router.post("/mods", response_model=BootstrapStarted, status_code=202)
async def bootstrap_mods(background_tasks: BackgroundTasks) -> BootstrapStarted:
    return _start(BootstrapScope.mods, background_tasks)
