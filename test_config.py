import pytest

from dupctl.config import (
    DEFAULT_SETTINGS,
    bandwidth_limit_kbps,
    find_repository,
    keep_policies,
    load_settings,
    maintenance_disabled,
    save_setting,
    settings_path,
)
from dupctl.errors import ConfigurationError


def test_missing_file_gives_defaults(tmp_path):
    assert load_settings(tmp_path / "nope") == DEFAULT_SETTINGS


def test_settings_path_from_env(tmp_path):
    assert settings_path() == tmp_path / "settings"


def test_load_settings_file(tmp_path):
    path = tmp_path / "settings"
    path.write_text(
        "# bandwidth in Mbit/s\n"
        "BANDWIDTH_LIMIT=20\n"
        "DISABLE_MAINTENANCE=yes\n"
        "GUESS_ROOT=/mnt/root\n"
    )
    settings = load_settings()
    assert settings["BANDWIDTH_LIMIT"] == "20"
    assert settings["DISABLE_MAINTENANCE"] == "yes"
    assert settings["GUESS_ROOT"] == "/mnt/root"
    assert settings["DUPLICACY"] == "duplicacy"


@pytest.mark.parametrize("raw,expected", [
    ("", None),
    ("0", None),
    ("1", 125),
    ("20", 2500),
    ("0.5", 62),
])
def test_bandwidth_limit_kbps(raw, expected):
    assert bandwidth_limit_kbps({"BANDWIDTH_LIMIT": raw}) == expected


@pytest.mark.parametrize("raw", ["fast", "-3", "inf", "nan"])
def test_bad_bandwidth_limit(raw):
    with pytest.raises(ConfigurationError):
        bandwidth_limit_kbps({"BANDWIDTH_LIMIT": raw})


@pytest.mark.parametrize("raw,expected", [
    ("", False), ("0", False), ("no", False), ("false", False),
    ("1", True), ("yes", True), ("TRUE", True), ("on", True),
])
def test_maintenance_disabled(raw, expected):
    assert maintenance_disabled({"DISABLE_MAINTENANCE": raw}) is expected


def test_bad_maintenance_flag():
    with pytest.raises(ConfigurationError):
        maintenance_disabled({"DISABLE_MAINTENANCE": "sometimes"})


def test_keep_policies_default():
    assert keep_policies(DEFAULT_SETTINGS) == ["0:3650", "365:1460", "30:720", "7:62", "1:7"]


def test_save_setting_appends_then_updates(tmp_path):
    path = tmp_path / "settings"
    path.write_text("# my settings\nGUESS_ROOT=/mnt\n")
    save_setting("BANDWIDTH_LIMIT", "10")
    save_setting("GUESS_ROOT", "/mirror")
    assert path.read_text() == "# my settings\nGUESS_ROOT=/mirror\nBANDWIDTH_LIMIT=10\n"
    assert load_settings()["GUESS_ROOT"] == "/mirror"


def test_save_unknown_setting():
    with pytest.raises(ConfigurationError):
        save_setting("COLOUR", "blue")


def test_find_repository_walks_up(repository, monkeypatch):
    nested = repository / "home" / "user"
    nested.mkdir(parents=True)
    monkeypatch.chdir(nested)
    assert find_repository({}).resolve() == repository.resolve()


def test_find_repository_from_settings(repository):
    assert find_repository({"REPOSITORY": str(repository)}) == repository.resolve()


def test_find_repository_configured_without_preferences(tmp_path):
    with pytest.raises(ConfigurationError):
        find_repository({"REPOSITORY": str(tmp_path)})


def test_find_repository_nothing_found(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    with pytest.raises(ConfigurationError):
        find_repository({})
