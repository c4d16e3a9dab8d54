"""Reader for the ``modlist`` manifest embedded in ``.wabbajack`` files.

A ``.wabbajack`` file is a zip archive; its ``modlist`` member is a JSON
document describing the package and every archive it needs.
"""

from __future__ import annotations

import json
import logging
import zipfile
import zlib
from pathlib import Path
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_pascal

from wabba_server.errors import ManifestError
from wabba_server.protocol.archive_source import (
    ArchiveSource,
    UnknownDownloader,
    parse_archive_source,
)

logger = logging.getLogger(__name__)

MANIFEST_MEMBER = "modlist"

SourceField = Annotated[ArchiveSource, BeforeValidator(parse_archive_source)]


class ManifestArchive(BaseModel):
    """One archive entry as declared by a manifest."""

    model_config = ConfigDict(
        alias_generator=to_pascal,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )

    hash: str
    meta: str = ""
    filename: str = Field(alias="Name")
    size: int = Field(ge=0)
    source: SourceField = Field(alias="State")

    def requires_download(self) -> bool:
        return self.source.requires_download()

    def display_name(self) -> str | None:
        return self.source.display_name()

    def display_version(self) -> str | None:
        return self.source.display_version()


class ModlistManifest(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_pascal,
        populate_by_name=True,
        extra="ignore",
    )

    archives: list[ManifestArchive] = Field(default_factory=list)
    name: str
    version: str
    author: str = ""
    description: str = ""
    game_type: str = ""
    image: str = ""
    readme: str = ""
    wabbajack_version: str = ""
    website: str = ""
    is_nsfw: bool = Field(default=False, alias="IsNSFW")

    def required_archives(self) -> list[ManifestArchive]:
        return [a for a in self.archives if a.requires_download()]

    def required_files(self) -> list[str]:
        return [a.filename for a in self.required_archives()]

    def files_from_unknown_downloaders(self) -> list[str]:
        return [a.filename for a in self.archives if isinstance(a.source, UnknownDownloader)]


def parse_manifest(document: str | bytes | dict[str, Any]) -> ModlistManifest:
    """Parse a manifest from its JSON text or an already-decoded object.

    Raises:
        ManifestError: If the document is not valid JSON or does not match
            the manifest schema.
    """
    try:
        data = json.loads(document) if isinstance(document, (str, bytes)) else document
        return ModlistManifest.model_validate(data)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ManifestError(f"Manifest is not valid JSON: {exc}") from exc
    except ValidationError as exc:
        raise ManifestError(
            f"Manifest does not match the expected schema ({exc.error_count()} error(s))"
        ) from exc


def load_manifest(path: Path) -> ModlistManifest:
    """Read and parse the manifest from a ``.wabbajack`` file on disk.

    Raises:
        ManifestError: If the file is missing, is not a zip archive, has no
            ``modlist`` member, the member cannot be decompressed, or it fails
            :func:`parse_manifest`.
    """
    try:
        with zipfile.ZipFile(path, "r") as zf:
            raw = zf.read(MANIFEST_MEMBER)
    except FileNotFoundError as exc:
        raise ManifestError(f"Modlist file not found: {path}") from exc
    except zipfile.BadZipFile as exc:
        raise ManifestError(f"{path.name} is not a valid zip archive") from exc
    except KeyError as exc:
        raise ManifestError(f"{path.name} has no '{MANIFEST_MEMBER}' entry") from exc
    except (zlib.error, EOFError, OSError, RuntimeError, NotImplementedError, ValueError) as exc:
        raise ManifestError(f"Cannot read '{MANIFEST_MEMBER}' from {path.name}: {exc}") from exc

    manifest = parse_manifest(raw)
    logger.debug(
        "Loaded manifest %s %s from %s with %d archive(s)",
        manifest.name,
        manifest.version,
        path.name,
        len(manifest.archives),
    )
    return manifest
