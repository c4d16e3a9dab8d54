"""Per-modlist declaration of a mod.

Two modlists may require identical content under different names and
sources, so the declared metadata lives on the link rather than on the mod.
"""

from sqlmodel import Column, Field, SQLModel, Text

from wabba_server.protocol.archive_source import ArchiveSource, dumps_source, loads_source


class ModAssociation(SQLModel, table=True):
    __tablename__ = "mod_association"

    modlist_id: int = Field(foreign_key="modlist.id", primary_key=True)
    mod_id: int = Field(foreign_key="mod.id", primary_key=True, index=True)
    filename: str
    name: str | None = None
    version: str | None = None
    source: str = Field(default="{}", sa_column=Column(Text, nullable=False))

    @property
    def archive_source(self) -> ArchiveSource:
        return loads_source(self.source)

    def set_source(self, source: ArchiveSource) -> None:
        self.source = dumps_source(source)
