from __future__ import annotations
from pathlib import Path


class CalnotesError(Exception):
    """Base class for every error raised by calnotes."""


class StorageNotReadyError(CalnotesError):
    pass


class NoStorageConfiguredError(StorageNotReadyError):
    def __init__(self) -> None:
        super().__init__("No storage directory chosen; complete setup first")


class StorageDirectoryMissingError(StorageNotReadyError):
    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"Storage directory {path} no longer exists; choose it again")


class DirectoryCreationError(CalnotesError):
    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        super().__init__(f"Could not create storage directory {path}: {reason}")


class NoteWriteError(CalnotesError):
    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        super().__init__(f"Could not write {path}: {reason}")


class ConflictError(CalnotesError):
    def __init__(self, expected: int, actual: int) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Notes changed on disk (revision {actual}, loaded {expected}); reload and retry"
        )


class CorruptDataError(CalnotesError):
    pass


class NoteNotFoundError(CalnotesError):
    def __init__(self, note_id: str) -> None:
        self.note_id = note_id
        super().__init__(f"Note '{note_id}' not found")


class CorruptDataWarning(UserWarning):
    pass
