import os
from pathlib import Path

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

MODLIST_DIR_NAME = "Modlists"
MOD_DIR_NAME = "Downloads"


def _default_data_dir() -> Path:
    if env := os.environ.get("DATA_DIR"):
        return Path(env)
    base = Path(os.environ.get("XDG_DATA_HOME", Path.home() / ".local" / "share"))
    return base / "wabba-server"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="WABBA_",
        extra="ignore",
    )

    data_dir: Path = Path("")
    db_path: Path = Path("")
    host: str = "0.0.0.0"
    port: int = 8080
    log_level: str = "INFO"

    @model_validator(mode="after")
    def _resolve_data_paths(self) -> "Settings":
        if self.data_dir == Path(""):
            self.data_dir = _default_data_dir()
        if self.db_path == Path(""):
            self.db_path = self.data_dir / "db.db"
        return self

    @property
    def modlist_dir(self) -> Path:
        return self.data_dir / MODLIST_DIR_NAME

    @property
    def mod_dir(self) -> Path:
        return self.data_dir / MOD_DIR_NAME


settings = Settings()
