from sqlmodel import select

from conftest import archive_entry, corrupt_wabbajack_bytes, manifest_document
from wabba_server.hashing import hash_bytes
from wabba_server.models.association import ModAssociation
from wabba_server.models.mod import Mod
from wabba_server.models.modlist import Modlist
from wabba_server.services.bootstrap import (
    BootstrapScope,
    bootstrap_mods,
    bootstrap_modlists,
    run_bootstrap,
)


def _layout(tmp_path):
    modlists = tmp_path / "Modlists"
    mods = tmp_path / "Downloads"
    modlists.mkdir()
    mods.mkdir()
    return modlists, mods


class TestBootstrapModlists:
    def test_registers_packages(self, session, tmp_path, make_wabbajack):
        modlists, _ = _layout(tmp_path)
        make_wabbajack(
            manifest_document([archive_entry(b"aaa", "a.7z")], name="Listed"),
            filename="listed.wabbajack",
            directory=modlists,
        )
        (modlists / "notes.txt").write_text("ignore me")

        report = bootstrap_modlists(session, modlists)

        assert report.ingested == ["listed.wabbajack"]
        assert report.skipped == ["notes.txt"]
        modlist = session.exec(select(Modlist)).one()
        assert modlist.name == "Listed"
        assert len(session.exec(select(ModAssociation)).all()) == 1

    def test_broken_package_does_not_stop_scan(self, session, tmp_path, make_wabbajack):
        modlists, _ = _layout(tmp_path)
        (modlists / "a-broken.wabbajack").write_bytes(b"not a zip")
        make_wabbajack(manifest_document([]), filename="b-good.wabbajack", directory=modlists)

        report = bootstrap_modlists(session, modlists)

        assert list(report.failed) == ["a-broken.wabbajack"]
        assert report.ingested == ["b-good.wabbajack"]

    def test_missing_directory(self, session, tmp_path):
        report = bootstrap_modlists(session, tmp_path / "nowhere")
        assert report.ingested == []


class TestBootstrapMods:
    def test_registers_files_and_skips_sidecars(self, session, tmp_path):
        _, mods = _layout(tmp_path)
        (mods / "a.7z").write_bytes(b"aaa")
        (mods / "a.7z.meta").write_text("[General]")
        (mods / "upload_123.tmp").write_bytes(b"partial")
        (mods / "nested").mkdir()

        report = bootstrap_mods(session, mods)

        assert report.ingested == ["a.7z"]
        assert sorted(report.skipped) == ["a.7z.meta", "nested", "upload_123.tmp"]
        mod = session.exec(select(Mod)).one()
        assert mod.xxhash64 == hash_bytes(b"aaa")
        assert mod.size == 3
        assert mod.disk_filename == "a.7z"

    def test_only_upload_temp_files_skipped(self, session, tmp_path):
        _, mods = _layout(tmp_path)
        (mods / "upload_helper.7z").write_bytes(b"helper")
        (mods / "upload_0f3a.tmp").write_bytes(b"partial")

        report = bootstrap_mods(session, mods)

        assert report.ingested == ["upload_helper.7z"]
        assert report.skipped == ["upload_0f3a.tmp"]

    def test_second_copy_skipped(self, session, tmp_path):
        _, mods = _layout(tmp_path)
        (mods / "a.7z").write_bytes(b"aaa")
        (mods / "b-copy.7z").write_bytes(b"aaa")

        report = bootstrap_mods(session, mods)

        assert report.ingested == ["a.7z"]
        assert report.skipped == ["b-copy.7z"]
        assert report.failed == {}
        assert session.exec(select(Mod)).one().disk_filename == "a.7z"


class TestRunBootstrap:
    def test_full_scan_makes_modlist_ready(self, session, tmp_path, make_wabbajack):
        modlists, mods = _layout(tmp_path)
        make_wabbajack(
            manifest_document([archive_entry(b"aaa", "a.7z")]),
            filename="l.wabbajack",
            directory=modlists,
        )
        (mods / "a.7z").write_bytes(b"aaa")

        report = run_bootstrap(session, BootstrapScope.all, modlists, mods)

        assert report.failed == {}
        assert sorted(report.ingested) == ["a.7z", "l.wabbajack"]
        assert session.exec(select(Mod)).one().disk_filename == "a.7z"

    def test_rerun_is_stable(self, session, tmp_path, make_wabbajack):
        modlists, mods = _layout(tmp_path)
        make_wabbajack(
            manifest_document([archive_entry(b"aaa", "a.7z"), archive_entry(b"b", "b.7z")]),
            filename="l.wabbajack",
            directory=modlists,
        )
        (mods / "a.7z").write_bytes(b"aaa")

        run_bootstrap(session, BootstrapScope.all, modlists, mods)
        run_bootstrap(session, BootstrapScope.all, modlists, mods)

        assert len(session.exec(select(Modlist)).all()) == 1
        assert len(session.exec(select(Mod)).all()) == 2
        assert len(session.exec(select(ModAssociation)).all()) == 2

    def test_mods_only_scope(self, session, tmp_path, make_wabbajack):
        modlists, mods = _layout(tmp_path)
        make_wabbajack(manifest_document([]), filename="l.wabbajack", directory=modlists)
        (mods / "a.7z").write_bytes(b"aaa")

        run_bootstrap(session, BootstrapScope.mods, modlists, mods)

        assert session.exec(select(Modlist)).all() == []
        assert len(session.exec(select(Mod)).all()) == 1

    def test_damaged_package_does_not_stop_mod_scan(self, session, tmp_path):
        modlists, mods = _layout(tmp_path)
        (modlists / "c.wabbajack").write_bytes(
            corrupt_wabbajack_bytes(manifest_document([archive_entry(b"aaa", "a.7z")]))
        )
        (mods / "a.7z").write_bytes(b"aaa")

        report = run_bootstrap(session, BootstrapScope.all, modlists, mods)

        assert list(report.failed) == ["c.wabbajack"]
        assert report.ingested == ["a.7z"]
        assert session.exec(select(Modlist)).all() == []
        assert session.exec(select(Mod)).one().disk_filename == "a.7z"
