"""Provenance descriptors declared by Wabbajack manifest entries.

Each manifest archive carries a ``State`` object tagged with a ``$type``
discriminator naming the downloader that fetches it.  The set of recognised
downloaders is closed; any other tag resolves to :class:`UnknownDownloader`
instead of failing the parse, so a manifest produced by a newer Wabbajack
still ingests.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_pascal

logger = logging.getLogger(__name__)

TYPE_KEY = "$type"


class ArchiveSource(BaseModel):
    """Base for all downloader variants."""

    model_config = ConfigDict(
        alias_generator=to_pascal,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )

    type_tag: ClassVar[str] = ""

    @property
    def kind(self) -> str:
        return type(self).__name__

    def requires_download(self) -> bool:
        """Whether the content must be obtained separately from the base game."""
        return True

    def display_name(self) -> str | None:
        return None

    def display_version(self) -> str | None:
        return None

    def wire_tag(self) -> str:
        return self.type_tag

    def to_wire(self) -> dict[str, Any]:
        data = self.model_dump(mode="json", by_alias=True)
        return {TYPE_KEY: self.wire_tag(), **data}


class NexusDownloader(ArchiveSource):
    type_tag: ClassVar[str] = "NexusDownloader, Wabbajack.Lib"

    author: str | None = None
    description: str = ""
    file_id: int = Field(alias="FileID")
    game_name: str
    image_url: str | None = Field(default=None, alias="ImageURL")
    is_nsfw: bool = Field(default=False, alias="IsNSFW")
    mod_id: int = Field(alias="ModID")
    name: str
    version: str

    def display_name(self) -> str | None:
        return self.name

    def display_version(self) -> str | None:
        return self.version


class HttpDownloader(ArchiveSource):
    type_tag: ClassVar[str] = "HttpDownloader, Wabbajack.Lib"

    url: str
    headers: Any = None


class GameFileSourceDownloader(ArchiveSource):
    type_tag: ClassVar[str] = "GameFileSourceDownloader, Wabbajack.Lib"

    game: str
    game_file: str
    game_version: str
    hash: str

    def requires_download(self) -> bool:
        return False


class WabbajackCDNDownloader(ArchiveSource):
    type_tag: ClassVar[str] = "WabbajackCDNDownloader+State, Wabbajack.Lib"

    url: str


class ManualDownloader(ArchiveSource):
    type_tag: ClassVar[str] = "ManualDownloader, Wabbajack.Lib"

    prompt: str = ""
    url: str


class MegaDownloader(ArchiveSource):
    type_tag: ClassVar[str] = "MegaDownloader, Wabbajack.Lib"

    url: str


class GoogleDriveDownloader(ArchiveSource):
    type_tag: ClassVar[str] = "GoogleDriveDownloader, Wabbajack.Lib"

    id: str


class MediaFireDownloader(ArchiveSource):
    type_tag: ClassVar[str] = "MediaFireDownloader+State, Wabbajack.Lib"

    url: str


class OAuthForumDownloader(ArchiveSource):
    """Forum-hosted file fetched through an IPS4 OAuth login (LoversLab)."""

    type_tag: ClassVar[str] = "LoversLabOAuthDownloader, Wabbajack.Lib"

    author: str | None = None
    description: str | None = None
    ips4_file: str | None = Field(default=None, alias="IPS4File")
    ips4_mod: int = Field(alias="IPS4Mod")
    ips4_url: str = Field(alias="IPS4Url")
    image_url: str | None = Field(default=None, alias="ImageURL")
    is_attachment: bool = False
    is_nsfw: bool = Field(default=False, alias="IsNSFW")
    name: str | None = None
    primary_key_string: str = ""
    url: str = Field(alias="URL")
    version: str | None = None

    def display_name(self) -> str | None:
        return self.name

    def display_version(self) -> str | None:
        return self.version


class UnknownDownloader(ArchiveSource):
    """Catch-all for tags this server does not recognise.

    Keeps the original tag so it can still be shown and round-tripped.
    """

    raw_type: str = ""

    def wire_tag(self) -> str:
        return self.raw_type

    def to_wire(self) -> dict[str, Any]:
        return {TYPE_KEY: self.raw_type}


KNOWN_SOURCES: tuple[type[ArchiveSource], ...] = (
    NexusDownloader,
    HttpDownloader,
    GameFileSourceDownloader,
    WabbajackCDNDownloader,
    ManualDownloader,
    MegaDownloader,
    GoogleDriveDownloader,
    MediaFireDownloader,
    OAuthForumDownloader,
)

_BY_TAG: dict[str, type[ArchiveSource]] = {cls.type_tag: cls for cls in KNOWN_SOURCES}


def parse_archive_source(data: Any) -> ArchiveSource:
    """Build the variant named by ``data["$type"]``.

    Unrecognised or missing tags yield :class:`UnknownDownloader`.  A known tag
    with an invalid payload raises ``pydantic.ValidationError``.
    """
    if isinstance(data, ArchiveSource):
        return data
    if not isinstance(data, Mapping):
        raise ValueError(f"Archive state must be an object, got {type(data).__name__}")
    tag = data.get(TYPE_KEY)
    cls = _BY_TAG.get(tag) if isinstance(tag, str) else None
    if cls is None:
        logger.debug("Unrecognised archive state tag %r", tag)
        return UnknownDownloader(raw_type=str(tag or ""))
    return cls.model_validate(data)


def dumps_source(source: ArchiveSource) -> str:
    return json.dumps(source.to_wire(), sort_keys=True)


def loads_source(raw: str) -> ArchiveSource:
    return parse_archive_source(json.loads(raw))
