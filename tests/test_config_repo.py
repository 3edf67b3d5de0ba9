"""Device-local config tests."""

import pytest

from fbop.models.config import AppMode, ThemeMode
from fbop.services.config_service import ConfigRepository


@pytest.fixture
def config(tmp_path):
    return ConfigRepository(tmp_path / "device" / "config.json")


def test_defaults(config):
    app_config = config.get_config()
    assert app_config.mode == AppMode.NOT_CONFIGURED
    assert app_config.family_id is None
    assert config.get_theme_mode() == ThemeMode.SYSTEM


def test_kid_mode(config):
    config.set_kid_mode("F1", "C1", "QZ4K8MNP")
    app_config = config.get_config()
    assert (app_config.mode, app_config.family_id, app_config.child_id, app_config.lookup_code) == (
        AppMode.KID,
        "F1",
        "C1",
        "QZ4K8MNP",
    )


def test_parent_mode_drops_kid_fields(config):
    config.set_kid_mode("F1", "C1", "QZ4K8MNP")
    config.set_parent_mode("F2")
    app_config = config.get_config()
    assert (app_config.mode, app_config.family_id, app_config.child_id) == (AppMode.PARENT, "F2", None)


def test_survives_reopen(config, tmp_path):
    config.set_parent_mode("F1")
    config.set_theme_mode(ThemeMode.DARK)

    reopened = ConfigRepository(tmp_path / "device" / "config.json")
    assert reopened.get_config().family_id == "F1"
    assert reopened.get_theme_mode() == ThemeMode.DARK


def test_clear(config):
    config.set_parent_mode("F1")
    config.set_theme_mode(ThemeMode.LIGHT)
    config.clear()
    config.clear()
    assert config.get_config().mode == AppMode.NOT_CONFIGURED
    assert config.get_theme_mode() == ThemeMode.SYSTEM


def test_corrupt_file_reads_as_defaults(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("{not json")
    config = ConfigRepository(path)
    assert config.get_config().mode == AppMode.NOT_CONFIGURED

    config.set_parent_mode("F1")
    assert config.get_config().family_id == "F1"
