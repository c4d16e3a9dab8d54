import io
import json
import os
import tempfile
import zipfile
from collections.abc import Generator

# Keep the import-time engine away from the user's real data directory.
os.environ.setdefault("WABBA_DATA_DIR", tempfile.mkdtemp(prefix="wabba-test-"))

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlmodel import Session, SQLModel, create_engine  # noqa: E402
from sqlmodel.pool import StaticPool  # noqa: E402

import wabba_server.models  # noqa: E402, F401 — register all tables
from wabba_server.config import settings  # noqa: E402
from wabba_server.database import get_session  # noqa: E402
from wabba_server.hashing import hash_bytes  # noqa: E402
from wabba_server.main import app  # noqa: E402


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(eng)
    return eng


def _monkeypatch_engine(monkeypatch, engine):
    monkeypatch.setattr("wabba_server.database.engine", engine)
    monkeypatch.setattr("wabba_server.routers.bootstrap.engine", engine)


@pytest.fixture
def data_dir(tmp_path, monkeypatch):
    d = tmp_path / "data"
    d.mkdir()
    monkeypatch.setattr(settings, "data_dir", d)
    return d


@pytest.fixture
def session(engine, monkeypatch):
    with Session(engine) as sess:
        _monkeypatch_engine(monkeypatch, engine)
        yield sess


@pytest.fixture
def client(engine, data_dir, monkeypatch):
    _monkeypatch_engine(monkeypatch, engine)

    def _override_session() -> Generator[Session, None, None]:
        with Session(engine) as sess:
            yield sess

    app.dependency_overrides[get_session] = _override_session
    with TestClient(app, raise_server_exceptions=False) as tc:
        yield tc
    app.dependency_overrides.clear()


def nexus_state(name: str = "Some Mod", version: str = "1.0", mod_id: int = 1) -> dict:
    return {
        "$type": "NexusDownloader, Wabbajack.Lib",
        "Author": "someone",
        "Description": "",
        "FileID": mod_id * 10,
        "GameName": "SkyrimSpecialEdition",
        "ImageURL": "",
        "IsNSFW": False,
        "ModID": mod_id,
        "Name": name,
        "Version": version,
    }


def game_file_state() -> dict:
    return {
        "$type": "GameFileSourceDownloader, Wabbajack.Lib",
        "Game": "SkyrimSpecialEdition",
        "GameFile": "Data/Skyrim.esm",
        "GameVersion": "1.6.640.0",
        "Hash": "AAAAAAAAAAA=",
    }


def archive_entry(content: bytes, name: str, state: dict | None = None) -> dict:
    return {
        "Hash": hash_bytes(content),
        "Meta": "",
        "Name": name,
        "Size": len(content),
        "State": state if state is not None else nexus_state(name=name),
    }


def manifest_document(
    archives: list[dict],
    name: str = "Test List",
    version: str = "1.0.0",
) -> dict:
    return {
        "Archives": archives,
        "Author": "tester",
        "Description": "",
        "GameType": "SkyrimSpecialEdition",
        "Image": "",
        "Readme": "",
        "WabbajackVersion": "3.0.0.0",
        "Website": "",
        "IsNSFW": False,
        "Name": name,
        "Version": version,
    }


@pytest.fixture
def make_wabbajack(tmp_path):
    """Write a ``.wabbajack`` zip holding *document* as its manifest and return its path."""

    def _make(document: dict, filename: str = "test.wabbajack", directory=None):
        target = (directory or tmp_path) / filename
        target.parent.mkdir(parents=True, exist_ok=True)
        with zipfile.ZipFile(target, "w") as zf:
            zf.writestr("modlist", json.dumps(document))
        return target

    return _make


def corrupt_wabbajack_bytes(document: dict) -> bytes:
    """A deflated ``.wabbajack`` whose manifest member has damaged compressed data."""
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        zf.writestr("modlist", json.dumps(document) * 50)
    data = bytearray(buf.getvalue())
    # local header (30 bytes) + "modlist"; compressed data follows
    start = 30 + len("modlist")
    for i in range(start, start + 16):
        data[i] ^= 0xFF
    return bytes(data)
