from __future__ import annotations
import logging
import os
import tempfile
import threading
import warnings
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import date as Date
from pathlib import Path
from typing import Iterable, Optional

from .config import ConfigStore
from .errors import (
    ConflictError,
    CorruptDataError,
    CorruptDataWarning,
    NoStorageConfiguredError,
    NoteWriteError,
    StorageDirectoryMissingError,
)
from .models import NOTES_FORMAT, Note, NotesFile

log = logging.getLogger(__name__)

NOTES_FILE_NAME = "notes.dat"

_locks: dict[str, threading.RLock] = {}
_locks_guard = threading.Lock()


def _lock_for(path: Path) -> threading.RLock:
    """One re-entrant lock per notes file, shared by every repository in the process."""
    key = os.path.normcase(str(path.resolve()))
    with _locks_guard:
        return _locks.setdefault(key, threading.RLock())


@dataclass
class NotesSnapshot:
    revision: int = 0
    notes: list[Note] = field(default_factory=list)


class NoteRepository:
    """
    The whole note collection, stored as one file in the configured directory.

    Every mutation loads the full collection, changes it in memory and writes
    it back while holding a per-file lock, so writers in this process take
    turns. Saves also carry the revision they loaded; a writer that bypassed
    the lock (another process) is reported as ConflictError.
    """

    def __init__(self, config: ConfigStore, *, strict: bool = False):
        self.config = config
        self.strict = strict

    def notes_file(self) -> Path:
        directory = self.config.storage_directory()
        if directory is None:
            raise NoStorageConfiguredError()
        if not directory.is_dir():
            raise StorageDirectoryMissingError(directory)
        return directory / NOTES_FILE_NAME

    # ---------- load / save ----------
    def _parse(self, path: Path) -> Optional[NotesFile]:
        """Parsed envelope, or None when the file is not a notes collection."""
        raw = path.read_bytes()
        try:
            envelope = NotesFile.model_validate_json(raw)
        except ValueError:
            return None
        if envelope.format != NOTES_FORMAT:
            return None
        return envelope

    def load(self) -> NotesSnapshot:
        path = self.notes_file()
        if not path.exists():
            return NotesSnapshot()
        envelope = self._parse(path)
        if envelope is None:
            if self.strict:
                raise CorruptDataError(f"{path} is not a readable notes collection")
            log.warning("Ignoring unreadable notes file %s", path)
            warnings.warn(
                f"{path} could not be read; treating it as empty",
                CorruptDataWarning,
                stacklevel=3,
            )
            return NotesSnapshot()
        return NotesSnapshot(revision=envelope.revision, notes=envelope.notes)

    def get_notes(self) -> list[Note]:
        return self.load().notes

    def _disk_revision(self, path: Path) -> int:
        if not path.exists():
            return 0
        envelope = self._parse(path)
        return envelope.revision if envelope else 0

    @contextmanager
    def writing(self):
        """Hold the notes file's lock across a load-modify-save cycle."""
        with _lock_for(self.notes_file()):
            yield

    def save_notes(self, notes: Iterable[Note], *, expected_revision: Optional[int] = None) -> int:
        """Replace the stored collection; returns the new revision."""
        path = self.notes_file()
        with _lock_for(path):
            current = self._disk_revision(path)
            if expected_revision is not None and expected_revision != current:
                log.warning("Save rejected: loaded revision %s, on disk %s", expected_revision, current)
                raise ConflictError(expected_revision, current)

            envelope = NotesFile(revision=current + 1, notes=list(notes))
            tmp: Optional[Path] = None
            try:
                with tempfile.NamedTemporaryFile(
                    "w", encoding="utf-8", dir=path.parent,
                    prefix=path.name + ".", suffix=".tmp", delete=False,
                ) as f:
                    tmp = Path(f.name)
                    f.write(envelope.model_dump_json(indent=2))
                os.replace(tmp, path)
            except OSError as e:
                log.error("Failed to write %s: %s", path, e)
                if tmp is not None and tmp.is_file():
                    tmp.unlink()
                raise NoteWriteError(path, e.strerror or str(e)) from e
        log.debug("Saved %d notes to %s (revision %d)", len(envelope.notes), path, envelope.revision)
        return envelope.revision

    # ---------- CRUD ----------
    def add_note(self, note: Note) -> None:
        with self.writing():
            snap = self.load()
            snap.notes.append(note)
            self.save_notes(snap.notes, expected_revision=snap.revision)

    def update_note(self, note: Note) -> bool:
        """
        Replace the stored note with the same id, keeping its position and
        created_at. Returns False (and writes nothing) if the id is unknown.
        """
        with self.writing():
            snap = self.load()
            for i, existing in enumerate(snap.notes):
                if existing.id == note.id:
                    snap.notes[i] = note.model_copy(update={"created_at": existing.created_at})
                    self.save_notes(snap.notes, expected_revision=snap.revision)
                    return True
        log.debug("Update ignored, unknown note id %s", note.id)
        return False

    def delete_note(self, note: Optional[Note]) -> bool:
        if note is None or not note.id:
            return False
        with self.writing():
            snap = self.load()
            kept = [n for n in snap.notes if n.id != note.id]
            if len(kept) == len(snap.notes):
                return False
            self.save_notes(kept, expected_revision=snap.revision)
        return True

    # ---------- queries ----------
    def get_note(self, note_id: str) -> Optional[Note]:
        for n in self.get_notes():
            if n.id == note_id:
                return n
        return None

    def get_notes_for_date(self, day: Date) -> list[Note]:
        return [n for n in self.get_notes() if n.date == day]

    def get_notes_between(self, start: Date, end: Date) -> list[Note]:
        """Notes dated within [start, end], in collection order."""
        return [n for n in self.get_notes() if start <= n.date <= end]
