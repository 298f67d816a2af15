import json
from pathlib import Path

import pytest

from ddx_viewer.config import ViewerConfig, default_temp_dir
from ddx_viewer.conversion.errors import ConfigurationError
from ddx_viewer.conversion.formats import FileFormat
from ddx_viewer.conversion.provisioner import ExternalPayload, PackagePayload
from ddx_viewer.settings_manager import SettingsManager


def test_defaults_without_settings_file(tmp_path: Path):
    cfg = ViewerConfig.from_settings(SettingsManager(str(tmp_path / "settings.json")))
    assert cfg.temp_dir == default_temp_dir()
    assert cfg.executable_path == default_temp_dir() / "texconv.exe"
    assert cfg.artifact_pattern == "*.png"
    assert cfg.display_format is FileFormat.PNG
    assert isinstance(cfg.payload(), PackagePayload)


def test_settings_override_paths(tmp_path: Path):
    settings_path = tmp_path / "settings.json"
    settings_path.write_text(
        json.dumps(
            {
                "temp_dir": str(tmp_path / "tmp"),
                "converter_path": str(tmp_path / "tools" / "texconv.exe"),
                "display_format": "TGA",
                "max_workers": 4,
            }
        ),
        encoding="utf-8",
    )

    cfg = ViewerConfig.from_settings(SettingsManager(str(settings_path)))

    assert cfg.temp_dir == (tmp_path / "tmp").resolve()
    assert cfg.display_format is FileFormat.TGA
    assert cfg.max_workers == 4
    payload = cfg.payload()
    assert isinstance(payload, ExternalPayload)
    assert payload.path == (tmp_path / "tools" / "texconv.exe").resolve()


def test_invalid_values_fall_back(tmp_path: Path):
    settings_path = tmp_path / "settings.json"
    settings_path.write_text(json.dumps({"display_format": "xyz", "max_workers": "many"}), encoding="utf-8")

    cfg = ViewerConfig.from_settings(SettingsManager(str(settings_path)))

    assert cfg.display_format is FileFormat.PNG
    assert cfg.max_workers == 2


def test_corrupt_settings_file_is_ignored(tmp_path: Path):
    settings_path = tmp_path / "settings.json"
    settings_path.write_text("{not json", encoding="utf-8")
    sm = SettingsManager(str(settings_path))
    assert sm.data == {}
    assert sm.get("converter_name") == "texconv.exe"


def test_settings_roundtrip_persists(tmp_path: Path):
    settings_path = tmp_path / "nested" / "settings.json"
    sm = SettingsManager(str(settings_path))
    sm.set("temp_dir", str(tmp_path / "t"))
    assert SettingsManager(str(settings_path)).get("temp_dir") == str(tmp_path / "t")


def test_ensure_directories_creates_temp_root(tmp_path: Path):
    cfg = ViewerConfig(temp_dir=tmp_path / "a" / "b")
    cfg.ensure_directories()
    assert cfg.temp_dir.is_dir()


def test_unwritable_temp_root_is_fatal(tmp_path: Path):
    blocker = tmp_path / "file"
    blocker.write_text("x", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        ViewerConfig(temp_dir=blocker / "temp").ensure_directories()


def test_sweeper_protects_managed_executable(tmp_path: Path):
    cfg = ViewerConfig(temp_dir=tmp_path, converter_name="texconv.png")
    cfg.executable_path.write_bytes(b"exe")
    (tmp_path / "photo.png").write_bytes(b"img")

    report = cfg.make_sweeper().sweep(cfg.temp_dir, cfg.artifact_pattern)

    assert cfg.executable_path.exists()
    assert [p.name for p in report.deleted] == ["photo.png"]
