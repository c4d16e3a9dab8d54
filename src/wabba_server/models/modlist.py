from datetime import UTC, datetime

from sqlmodel import Field, SQLModel


class Modlist(SQLModel, table=True):
    __tablename__ = "modlist"

    id: int | None = Field(default=None, primary_key=True)
    filename: str = Field(unique=True, index=True)
    name: str
    version: str
    size: int
    xxhash64: str = Field(index=True)
    available: bool = False
    muted: bool = False
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
