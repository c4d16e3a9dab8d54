from fastapi import APIRouter

from wabba_server.routers.bootstrap import router as bootstrap_router
from wabba_server.routers.modlists import router as modlists_router
from wabba_server.routers.mods import router as mods_router
from wabba_server.routers.uploads import router as uploads_router

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(uploads_router)
api_router.include_router(modlists_router)
api_router.include_router(mods_router)
api_router.include_router(bootstrap_router)
