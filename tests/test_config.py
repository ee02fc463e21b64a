import shutil

import pytest

from calnotes.config import ConfigStore
from calnotes.db import create_settings_engine
from calnotes.errors import DirectoryCreationError


def test_defaults_on_fresh_settings(config):
    assert config.is_onboarded() is False
    assert config.storage_directory() is None
    assert config.has_storage_directory() is False


def test_set_onboarded_is_idempotent(config):
    config.set_onboarded()
    config.set_onboarded()
    assert config.is_onboarded() is True


def test_storage_directory_is_created_and_absolute(config, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    d = config.set_storage_directory("nested/deeper")
    assert d.is_absolute()
    assert d.resolve() == (tmp_path / "nested" / "deeper").resolve()
    assert d.is_dir()
    assert config.has_storage_directory() is True


def test_deleted_directory_is_detected(config, tmp_path):
    d = config.set_storage_directory(tmp_path / "notes")
    shutil.rmtree(d)
    assert config.has_storage_directory() is False
    # the path itself is still recorded
    assert config.storage_directory() == d


def test_creation_failure_is_raised_and_not_recorded(config, tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")

    with pytest.raises(DirectoryCreationError):
        config.set_storage_directory(blocker / "notes")
    assert config.storage_directory() is None


def test_settings_survive_reopen(tmp_path):
    path = tmp_path / "settings.db"
    first = ConfigStore.open(path)
    first.set_onboarded()
    first.set_storage_directory(tmp_path / "notes")
    first.close()

    second = ConfigStore.open(path)
    assert second.is_onboarded() is True
    assert second.storage_directory() == tmp_path / "notes"
    second.close()


def test_settings_path_from_env(tmp_path, monkeypatch):
    target = tmp_path / "env" / "settings.db"
    monkeypatch.setenv("CALNOTES_SETTINGS_PATH", str(target))
    engine = create_settings_engine()
    ConfigStore(engine).set_onboarded()
    engine.dispose()
    assert target.exists()


def test_invalid_path_is_a_creation_error(config, tmp_path):
    with pytest.raises(DirectoryCreationError):
        config.set_storage_directory(str(tmp_path) + "/bad\x00name")
    assert config.storage_directory() is None
