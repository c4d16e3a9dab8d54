from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel

from wabba_server.models.mod import ModState
from wabba_server.services.bootstrap import BootstrapScope
from wabba_server.services.modlist_catalog import ModlistStatus


class ModlistOut(BaseModel):
    id: int
    filename: str
    name: str
    version: str
    size: int
    xxhash64: str
    available: bool
    muted: bool
    status: ModlistStatus
    mods_total: int
    mods_available: int
    created_at: datetime


class AssociatedModOut(BaseModel):
    """A mod as declared by one particular modlist."""

    mod_id: int
    filename: str
    name: str | None = None
    version: str | None = None
    source_kind: str
    requires_download: bool
    xxhash64: str
    size: int
    state: ModState
    disk_filename: str | None = None


class ModlistDetail(ModlistOut):
    missing_files: list[str]
    mods: list[AssociatedModOut]


class ModOut(BaseModel):
    id: int
    xxhash64: str
    size: int
    disk_filename: str | None = None
    lost_forever: bool
    state: ModState
    created_at: datetime


class ModDeclarationOut(BaseModel):
    """How one modlist names and sources a mod."""

    modlist_id: int
    modlist_name: str
    modlist_version: str
    filename: str
    name: str | None = None
    version: str | None = None
    source: dict[str, Any]


class ModDetail(ModOut):
    declarations: list[ModDeclarationOut]


class RenameRequest(BaseModel):
    name: str


class UploadResult(BaseModel):
    kind: str
    id: int
    filename: str
    xxhash64: str
    size: int
    mods_created: int = 0
    associations_created: int = 0
    associations_updated: int = 0


class BootstrapStarted(BaseModel):
    scope: BootstrapScope
    message: str
