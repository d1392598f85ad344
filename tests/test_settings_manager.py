from __future__ import annotations

import json
import sys
from pathlib import Path

import pytest

from cloudtree.errors import SettingsLoadError, SettingsValidationError
from cloudtree.settings.manager import SettingsManager, default_settings_path
from cloudtree.settings.schema import DEFAULT_SETTINGS, merge_with_defaults


def test_settings_manager_roundtrip(tmp_path: Path) -> None:
    settings_path = tmp_path / "settings.json"
    manager = SettingsManager(path=settings_path)
    manager.load()
    assert settings_path.exists()
    assert manager.get("tree.page_size") == DEFAULT_SETTINGS["tree"]["page_size"]

    received = []
    manager.settings_changed.connect(lambda key, value: received.append((key, value)))
    manager.set("tree.page_size", 5)

    assert received == [("tree.page_size", 5)]
    assert manager.get("tree.page_size") == 5
    stored = json.loads(settings_path.read_text(encoding="utf-8"))
    assert stored["tree"]["page_size"] == 5


def test_partial_file_is_merged_with_defaults(tmp_path: Path) -> None:
    settings_path = tmp_path / "settings.json"
    settings_path.write_text(json.dumps({"logging": {"level": "DEBUG"}}), encoding="utf-8")

    manager = SettingsManager(path=settings_path)
    manager.load()

    assert manager.get("logging.level") == "DEBUG"
    assert manager.get("telemetry.enabled") is True
    assert manager.get("tree.load_more_command_id") == "cloudtree.loadMore"


def test_missing_keys_return_default(tmp_path: Path) -> None:
    manager = SettingsManager(path=tmp_path / "settings.json")

    assert manager.get("tree.unknown") is None
    assert manager.get("tree.page_size.deeper", "fallback") == "fallback"
    assert manager.get("nothing", 3) == 3


def test_invalid_update_keeps_previous_value(tmp_path: Path) -> None:
    settings_path = tmp_path / "settings.json"
    manager = SettingsManager(path=settings_path)
    manager.load()
    received = []
    manager.settings_changed.connect(lambda *args: received.append(args))

    with pytest.raises(SettingsValidationError):
        manager.set("tree.page_size", 0)

    assert manager.get("tree.page_size") == DEFAULT_SETTINGS["tree"]["page_size"]
    assert received == []
    stored = json.loads(settings_path.read_text(encoding="utf-8"))
    assert stored["tree"]["page_size"] == DEFAULT_SETTINGS["tree"]["page_size"]


def test_invalid_file_contents(tmp_path: Path) -> None:
    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")
    with pytest.raises(SettingsLoadError):
        SettingsManager(path=broken).load()

    not_object = tmp_path / "list.json"
    not_object.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(SettingsLoadError):
        SettingsManager(path=not_object).load()

    bad_level = tmp_path / "level.json"
    bad_level.write_text(json.dumps({"logging": {"level": "LOUD"}}), encoding="utf-8")
    with pytest.raises(SettingsValidationError):
        SettingsManager(path=bad_level).load()


def test_merge_does_not_mutate_defaults() -> None:
    merged = merge_with_defaults({"tree": {"page_size": 7}})

    assert merged["tree"]["page_size"] == 7
    assert merged["tree"]["load_more_command_id"] == "cloudtree.loadMore"
    assert DEFAULT_SETTINGS["tree"]["page_size"] != 7


@pytest.mark.skipif(sys.platform in ("win32", "darwin"), reason="XDG layout only applies on Linux")
def test_default_path_follows_xdg(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))

    assert default_settings_path() == tmp_path / "cloudtree" / "settings.json"
    assert SettingsManager().path == tmp_path / "cloudtree" / "settings.json"
