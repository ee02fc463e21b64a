from __future__ import annotations
from datetime import date as Date, datetime
import uuid
from pydantic import BaseModel, Field
from sqlmodel import Field as SQLField, SQLModel

NOTES_FORMAT = 1


def new_note_id() -> str:
    return f"note-{uuid.uuid4()}"


class Note(BaseModel):
    """A journal entry filed under one calendar day."""

    id: str = Field(default_factory=new_note_id)
    date: Date
    title: str = ""
    content: str = ""
    created_at: datetime = Field(default_factory=datetime.now)

    @classmethod
    def new(cls, date: Date, title: str, content: str = "") -> Note:
        return cls(date=date, title=title, content=content)

    def __str__(self) -> str:
        return self.title if self.title and self.title.strip() else self.content


class NotesFile(BaseModel):
    """On-disk envelope of notes.dat."""

    format: int = NOTES_FORMAT
    revision: int = 0
    notes: list[Note] = Field(default_factory=list)


class Setting(SQLModel, table=True):
    key: str = SQLField(primary_key=True)
    value: str
