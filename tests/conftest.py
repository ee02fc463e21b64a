import pytest

from calnotes.config import ConfigStore
from calnotes.storage import NoteRepository


@pytest.fixture
def config(tmp_path):
    store = ConfigStore.open(tmp_path / "settings.db")
    yield store
    store.close()


@pytest.fixture
def repo(config, tmp_path):
    config.set_storage_directory(tmp_path / "notes")
    return NoteRepository(config)
