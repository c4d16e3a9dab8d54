"""Content-addressed mod archives, tracked independently of any modlist."""

from datetime import UTC, datetime
from enum import StrEnum

from sqlmodel import Field, SQLModel, UniqueConstraint


class ModState(StrEnum):
    available = "available"
    unavailable = "unavailable"
    lost_forever = "lost_forever"


class Mod(SQLModel, table=True):
    __tablename__ = "mod"
    __table_args__ = (UniqueConstraint("xxhash64", "size", name="uq_mod_hash_size"),)

    id: int | None = Field(default=None, primary_key=True)
    xxhash64: str = Field(index=True)
    size: int
    disk_filename: str | None = Field(default=None, index=True)
    lost_forever: bool = False
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def is_available(self) -> bool:
        return self.disk_filename is not None

    @property
    def state(self) -> ModState:
        if self.disk_filename is not None:
            return ModState.available
        if self.lost_forever:
            return ModState.lost_forever
        return ModState.unavailable
