import pytest

from wabba_server.errors import ContentIntegrityError, ModHasDiskFilenameError
from wabba_server.models.mod import Mod, ModState
from wabba_server.services import content_registry

H1 = "AAAAAAAAAAE="


class TestResolveMod:
    def test_creates_unavailable(self, session):
        mod, created = content_registry.resolve_mod(session, H1, 100)
        session.commit()
        assert created
        assert mod.id is not None
        assert mod.state == ModState.unavailable

    def test_reuses_existing(self, session):
        first, _ = content_registry.resolve_mod(session, H1, 100)
        second, created = content_registry.resolve_mod(session, H1, 100)
        assert not created
        assert second.id == first.id

    def test_same_hash_other_size_refused(self, session):
        content_registry.resolve_mod(session, H1, 100)
        with pytest.raises(ContentIntegrityError) as exc_info:
            content_registry.resolve_mod(session, H1, 101)
        assert exc_info.value.known_size == 100
        assert exc_info.value.declared_size == 101


class TestLookups:
    def test_list_unavailable(self, session):
        session.add(Mod(xxhash64="a", size=1, disk_filename="a.7z"))
        session.add(Mod(xxhash64="b", size=2))
        session.commit()
        assert [m.xxhash64 for m in content_registry.list_unavailable(session)] == ["b"]
        assert len(content_registry.list_mods(session)) == 2

    def test_by_disk_filename(self, session):
        session.add(Mod(xxhash64="a", size=1, disk_filename="a.7z"))
        session.commit()
        assert content_registry.get_by_disk_filename(session, "a.7z").xxhash64 == "a"
        assert content_registry.get_by_disk_filename(session, "b.7z") is None


class TestLostForever:
    def test_toggle_on_and_off(self, session):
        mod = Mod(xxhash64=H1, size=5)
        session.add(mod)
        session.commit()
        content_registry.toggle_lost_forever(session, mod)
        assert mod.lost_forever
        assert mod.state == ModState.lost_forever
        content_registry.toggle_lost_forever(session, mod)
        assert not mod.lost_forever

    def test_refused_when_stored(self, session):
        mod = Mod(xxhash64=H1, size=5, disk_filename="x.7z")
        session.add(mod)
        session.commit()
        with pytest.raises(ModHasDiskFilenameError):
            content_registry.toggle_lost_forever(session, mod)
        assert not mod.lost_forever

    def test_mark_available_clears_flag(self, session):
        mod = Mod(xxhash64=H1, size=5, lost_forever=True)
        session.add(mod)
        session.commit()
        content_registry.mark_available(session, mod, "found.7z")
        session.commit()
        assert mod.state == ModState.available
        assert not mod.lost_forever
