from __future__ import annotations
import logging
from pathlib import Path
from typing import Optional
from sqlalchemy.engine import Engine

from .db import create_settings_engine, session_scope
from .errors import DirectoryCreationError
from .models import Setting

log = logging.getLogger(__name__)

ONBOARDED_KEY = "onboarded"
STORAGE_DIR_KEY = "storageDirectory"


class ConfigStore:
    """Durable key-value settings kept apart from the notes directory."""

    def __init__(self, engine: Engine):
        self.engine = engine

    @classmethod
    def open(cls, path: Optional[Path] = None) -> ConfigStore:
        return cls(create_settings_engine(path))

    def close(self) -> None:
        self.engine.dispose()

    def _get(self, key: str) -> Optional[str]:
        with session_scope(self.engine) as s:
            row = s.get(Setting, key)
            return row.value if row else None

    def _put(self, key: str, value: str) -> None:
        with session_scope(self.engine) as s:
            row = s.get(Setting, key)
            if row is None:
                row = Setting(key=key, value=value)
            else:
                row.value = value
            s.add(row)

    def is_onboarded(self) -> bool:
        return self._get(ONBOARDED_KEY) == "true"

    def set_onboarded(self) -> None:
        self._put(ONBOARDED_KEY, "true")

    def storage_directory(self) -> Optional[Path]:
        """Recorded directory, whether or not it still exists."""
        raw = self._get(STORAGE_DIR_KEY)
        return Path(raw) if raw else None

    def has_storage_directory(self) -> bool:
        directory = self.storage_directory()
        return directory is not None and directory.is_dir()

    def set_storage_directory(self, path: Path | str) -> Path:
        directory = Path(path).expanduser().absolute()
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            log.error("Cannot create storage directory %s: %s", directory, e)
            raise DirectoryCreationError(directory, e.strerror or str(e)) from e
        except ValueError as e:
            # e.g. an embedded NUL byte
            log.error("Invalid storage directory %r: %s", str(directory), e)
            raise DirectoryCreationError(directory, str(e)) from e
        self._put(STORAGE_DIR_KEY, str(directory))
        log.info("Storage directory set to %s", directory)
        return directory
