from __future__ import annotations
import calendar
import logging
from datetime import date as Date
from pathlib import Path
from typing import Any, Iterable, Optional

from .config import ConfigStore
from .errors import NoteNotFoundError
from .models import Note
from .storage import NoteRepository

log = logging.getLogger(__name__)


def choose_directory(config: ConfigStore, path: Path | str) -> Path:
    """Record the storage directory (creating it) and finish onboarding."""
    directory = config.set_storage_directory(path)
    config.set_onboarded()
    return directory


def needs_setup(config: ConfigStore) -> bool:
    return not (config.is_onboarded() and config.has_storage_directory())


def _clean_title(title: Optional[str]) -> str:
    if title is None or not title.strip():
        raise ValueError("Title must not be empty")
    return title.strip()


def create_note(repo: NoteRepository, day: Date, title: str, content: str = "") -> Note:
    note = Note.new(day, _clean_title(title), (content or "").strip())
    repo.add_note(note)
    log.debug("Created note %s on %s", note.id, day)
    return note


def get_note(repo: NoteRepository, note_id: str) -> Note:
    note = repo.get_note(note_id)
    if note is None:
        raise NoteNotFoundError(note_id)
    return note


def edit_note(
    repo: NoteRepository,
    note_id: str,
    *,
    title: Optional[str] = None,
    content: Optional[str] = None,
    day: Optional[Date] = None,
) -> Note:
    """
    Change title, content and/or date of an existing note.
    Fields left as None keep their stored value.
    """
    note = get_note(repo, note_id)
    changes: dict[str, Any] = {}
    if title is not None:
        changes["title"] = _clean_title(title)
    if content is not None:
        changes["content"] = content.strip()
    if day is not None:
        changes["date"] = day
    updated = note.model_copy(update=changes)
    if not repo.update_note(updated):
        # removed between the lookup and the save
        raise NoteNotFoundError(note_id)
    return updated


def delete_note(repo: NoteRepository, note_id: str) -> None:
    if not repo.delete_note(get_note(repo, note_id)):
        raise NoteNotFoundError(note_id)


def month_notes(repo: NoteRepository, year: int, month: int) -> dict[Date, list[Note]]:
    """Notes of one month grouped by day, days in calendar order."""
    last = calendar.monthrange(year, month)[1]
    grouped: dict[Date, list[Note]] = {}
    for n in repo.get_notes_between(Date(year, month, 1), Date(year, month, last)):
        grouped.setdefault(n.date, []).append(n)
    return dict(sorted(grouped.items()))


def export_notes(repo: NoteRepository) -> list[dict[str, Any]]:
    return [n.model_dump(mode="json") for n in repo.get_notes()]


def import_notes(repo: NoteRepository, items: Iterable[dict[str, Any]]) -> int:
    """Append notes whose ids are not stored yet; returns how many were added."""
    with repo.writing():
        snap = repo.load()
        known = {n.id for n in snap.notes}
        added = 0
        for item in items:
            note = Note.model_validate(item)
            if note.id in known:
                continue
            _clean_title(note.title)
            snap.notes.append(note)
            known.add(note.id)
            added += 1
        if added:
            repo.save_notes(snap.notes, expected_revision=snap.revision)
    return added
