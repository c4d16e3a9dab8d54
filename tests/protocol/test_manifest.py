import zipfile

import pytest

from conftest import archive_entry, corrupt_wabbajack_bytes, game_file_state, manifest_document
from wabba_server.errors import ManifestError
from wabba_server.hashing import hash_bytes
from wabba_server.protocol.archive_source import NexusDownloader, UnknownDownloader
from wabba_server.protocol.manifest import load_manifest, parse_manifest


class TestParseManifest:
    def test_reads_archives(self):
        doc = manifest_document(
            [
                archive_entry(b"first", "first.7z"),
                archive_entry(b"second", "second.zip", state=game_file_state()),
            ],
            name="My List",
            version="2.1",
        )
        manifest = parse_manifest(doc)
        assert manifest.name == "My List"
        assert manifest.version == "2.1"
        assert manifest.game_type == "SkyrimSpecialEdition"
        assert [a.filename for a in manifest.archives] == ["first.7z", "second.zip"]
        first = manifest.archives[0]
        assert first.hash == hash_bytes(b"first")
        assert first.size == 5
        assert isinstance(first.source, NexusDownloader)

    def test_required_files_skip_game_files(self):
        doc = manifest_document(
            [
                archive_entry(b"a", "a.7z"),
                archive_entry(b"b", "Skyrim.esm", state=game_file_state()),
            ]
        )
        manifest = parse_manifest(doc)
        assert manifest.required_files() == ["a.7z"]

    def test_unknown_downloaders_listed(self):
        doc = manifest_document(
            [
                archive_entry(b"a", "a.7z"),
                archive_entry(b"b", "b.7z", state={"$type": "NewThing, Wabbajack.Lib"}),
            ]
        )
        manifest = parse_manifest(doc)
        assert manifest.files_from_unknown_downloaders() == ["b.7z"]
        assert isinstance(manifest.archives[1].source, UnknownDownloader)

    def test_accepts_json_text(self):
        manifest = parse_manifest('{"Name": "L", "Version": "1", "Archives": []}')
        assert manifest.archives == []

    def test_invalid_json(self):
        with pytest.raises(ManifestError):
            parse_manifest("{not json")

    def test_missing_required_field(self):
        with pytest.raises(ManifestError):
            parse_manifest({"Archives": []})

    def test_negative_size_rejected(self):
        entry = archive_entry(b"a", "a.7z")
        entry["Size"] = -1
        with pytest.raises(ManifestError):
            parse_manifest(manifest_document([entry]))


class TestLoadManifest:
    def test_reads_zip_member(self, make_wabbajack):
        path = make_wabbajack(manifest_document([archive_entry(b"x", "x.7z")], name="Zipped"))
        manifest = load_manifest(path)
        assert manifest.name == "Zipped"
        assert len(manifest.archives) == 1

    def test_missing_file(self, tmp_path):
        with pytest.raises(ManifestError):
            load_manifest(tmp_path / "nope.wabbajack")

    def test_not_a_zip(self, tmp_path):
        path = tmp_path / "bad.wabbajack"
        path.write_bytes(b"definitely not a zip")
        with pytest.raises(ManifestError):
            load_manifest(path)

    def test_zip_without_manifest(self, tmp_path):
        path = tmp_path / "empty.wabbajack"
        with zipfile.ZipFile(path, "w") as zf:
            zf.writestr("readme.txt", "hi")
        with pytest.raises(ManifestError):
            load_manifest(path)

    def test_damaged_compressed_member(self, tmp_path):
        path = tmp_path / "damaged.wabbajack"
        path.write_bytes(corrupt_wabbajack_bytes(manifest_document([archive_entry(b"x", "x.7z")])))
        with pytest.raises(ManifestError):
            load_manifest(path)
