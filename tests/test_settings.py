from __future__ import annotations

from pathlib import Path

import pytest

from pkgsettings.errors import PreferenceStoreError
from pkgsettings.file_repository import FileSettingsRepository
from pkgsettings.preferences import MemoryPreferenceStore, PreferenceSettingsRepository
from pkgsettings.scopes import SettingsScope
from pkgsettings.settings import Settings


def make_settings(tmp_path: Path, **kwargs) -> tuple[Settings, FileSettingsRepository, PreferenceSettingsRepository]:
    project = FileSettingsRepository(tmp_path / "Settings.json")
    user = PreferenceSettingsRepository(MemoryPreferenceStore())
    return Settings([project, user], **kwargs), project, user


def test_end_to_end(tmp_path: Path):
    settings, _, _ = make_settings(tmp_path)
    settings.set("volume", 0.8, scope=SettingsScope.PROJECT)
    settings.save()

    again, _, _ = make_settings(tmp_path)
    assert again.get("volume", scope=SettingsScope.PROJECT, fallback=1.0) == 0.8


def test_scope_routing(tmp_path: Path):
    settings, project, user = make_settings(tmp_path)
    settings.set("theme", "dark", scope="user")
    settings.set("volume", 0.5)

    assert settings.get("theme", "light", SettingsScope.PROJECT) == "light"
    assert settings.get("theme", "light", SettingsScope.USER) == "dark"
    assert settings.get("volume", 1.0, SettingsScope.USER) == 1.0
    assert project.contains_key("volume", float)
    assert not user.contains_key("volume", float)


def test_project_set_does_not_reach_user_by_default(tmp_path: Path):
    settings, _, user = make_settings(tmp_path)
    settings.set("x", 1)
    assert not user.contains_key("x", int)
    user.set("x", 2)
    settings.delete_key("x", int)
    assert user.contains_key("x", int)


def test_mirror_to_user(tmp_path: Path):
    settings, project, user = make_settings(tmp_path, mirror_to_user=True)
    settings.set("x", 1)
    assert project.get("x", int) == 1
    assert user.get("x", int) == 1

    settings.delete_key("x", int)
    assert not project.contains_key("x", int)
    assert not user.contains_key("x", int)

    settings.set("y", 2, repository_type=FileSettingsRepository)
    assert not user.contains_key("y", int)


def test_delete_key(tmp_path: Path):
    settings, _, _ = make_settings(tmp_path)
    settings.set("flag", True)
    settings.delete_key("flag", bool)
    assert not settings.contains_key("flag", bool)
    settings.delete_key("flag", bool)
    settings.delete_key("never-set", str, SettingsScope.USER)


def test_type_isolation(tmp_path: Path):
    settings, _, _ = make_settings(tmp_path)
    settings.set("x", 1)
    assert settings.get("x", "fallback") == "fallback"
    assert settings.get("x", value_type=int) == 1


def test_value_type_required():
    settings = Settings([])
    with pytest.raises(TypeError):
        settings.get("x")


def test_missing_key_is_silent(tmp_path: Path, caplog):
    settings, _, _ = make_settings(tmp_path)
    with caplog.at_level("WARNING", logger="pkgsettings"):
        assert settings.get("flag", True) is True
        assert settings.get("flag", True, SettingsScope.USER) is True
    assert caplog.records == []


def test_missing_repository_warns(tmp_path: Path, caplog):
    settings = Settings([FileSettingsRepository(tmp_path / "Settings.json")])
    with caplog.at_level("WARNING", logger="pkgsettings"):
        assert settings.get("flag", True, SettingsScope.USER) is True
        assert settings.contains_key("flag", bool, SettingsScope.USER) is False
        settings.set("flag", False, SettingsScope.USER)
        settings.delete_key("flag", bool, SettingsScope.USER)
    assert len(caplog.records) == 4
    assert all("No repository with scope user" in r.getMessage() for r in caplog.records)
    assert not settings.contains_key("flag", bool)


def test_unknown_scope_warns(tmp_path: Path, caplog):
    settings, project, _ = make_settings(tmp_path)
    with caplog.at_level("WARNING", logger="pkgsettings"):
        assert settings.get("x", 3, "global") == 3
        settings.set("x", 1, "global")
    assert "Unknown settings scope" in caplog.text
    assert not project.contains_key("x", int)


def test_repository_name_filter(tmp_path: Path):
    a = FileSettingsRepository(tmp_path / "A.json")
    b = FileSettingsRepository(tmp_path / "B.json")
    settings = Settings([a, b])

    settings.set("x", 1)
    assert a.get("x", int) == 1 and b.get("x", int) == 1

    settings.set("y", 2, repository_name="B")
    assert not a.contains_key("y", int)
    assert settings.get("y", 0, repository_name="B") == 2
    assert settings.get("y", 0) == 0


def test_repository_type_selector(tmp_path: Path):
    settings, _, user = make_settings(tmp_path)
    settings.set("x", 5, repository_type=PreferenceSettingsRepository)
    assert user.get("x", int) == 5
    assert settings.get("x", 0, repository_type=PreferenceSettingsRepository) == 5
    assert settings.contains_key("x", int, repository_type=PreferenceSettingsRepository)


def test_get_repository(tmp_path: Path):
    settings, project, user = make_settings(tmp_path)
    assert settings.get_repository(SettingsScope.PROJECT) is project
    assert settings.get_repository("user") is user
    assert settings.get_repository(SettingsScope.USER, "Preferences") is user
    assert settings.get_repository(SettingsScope.USER, "Other") is None
    assert Settings([]).get_repository(SettingsScope.PROJECT) is None


def test_repositories_are_fixed(tmp_path: Path):
    repos = [FileSettingsRepository(tmp_path / "Settings.json")]
    settings = Settings(repos)
    repos.append(PreferenceSettingsRepository(MemoryPreferenceStore()))
    assert len(settings.repositories) == 1


def test_save_notifications_in_order(tmp_path: Path):
    calls: list[str] = []

    class Recording(PreferenceSettingsRepository):
        def save(self) -> None:
            calls.append(f"save:{self.name}")

    first = Recording(MemoryPreferenceStore(), name="first")
    second = Recording(MemoryPreferenceStore(), name="second")
    settings = Settings([first, second])
    settings.on("before_save", lambda: calls.append("before"))
    settings.on("after_save", lambda: calls.append("after"))
    settings.save()
    assert calls == ["before", "save:first", "save:second", "after"]


def test_notification_errors_propagate(tmp_path: Path):
    settings, _, _ = make_settings(tmp_path)

    def boom() -> None:
        raise RuntimeError("boom")

    settings.on("before_save", boom)
    with pytest.raises(RuntimeError):
        settings.save()
    settings.off("before_save", boom)
    settings.save()


def test_unknown_event():
    with pytest.raises(ValueError):
        Settings([]).on("during_save", lambda: None)


def test_for_package(tmp_path: Path):
    store = MemoryPreferenceStore()
    settings = Settings.for_package("com.example.tool", root=tmp_path, preferences=store)
    project, user = settings.repositories
    assert project.path == tmp_path / "ProjectSettings" / "Packages" / "com.example.tool" / "Settings.json"
    assert isinstance(user, PreferenceSettingsRepository)
    settings.set("theme", "dark", SettingsScope.USER)
    assert store.values == {"com.example.tool::str::theme": '"dark"'}


def test_unsupported_lookup_type_is_absent(tmp_path: Path):
    settings, _, _ = make_settings(tmp_path)
    settings.set("x", 1)
    assert settings.get("x", value_type=set) is None
    assert settings.get("x", frozenset({1})) == frozenset({1})
    assert settings.contains_key("x", set) is False
    settings.delete_key("x", set)
    assert settings.get("x", 0) == 1


def test_user_store_read_failure_returns_fallback(tmp_path: Path):
    class LockedStore(MemoryPreferenceStore):
        def get_value(self, key: str) -> str | None:
            raise PreferenceStoreError("keyring locked")

    settings = Settings([PreferenceSettingsRepository(LockedStore())])
    assert settings.get("x", 5, "user") == 5
    assert settings.contains_key("x", int, "user") is False
