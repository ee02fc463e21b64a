# calnotes/app.py
from __future__ import annotations
from contextlib import asynccontextmanager
from datetime import date as Date
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .config import ConfigStore
from .errors import (
    CalnotesError,
    ConflictError,
    DirectoryCreationError,
    NoteNotFoundError,
    StorageNotReadyError,
)
from .logging_setup import setup_logging
from .models import Note
from .services import choose_directory, create_note, delete_note, edit_note, get_note
from .storage import NoteRepository

# ---------- Schemas ----------
class SetupIn(BaseModel):
    directory: str

class StatusOut(BaseModel):
    onboarded: bool
    storage_directory: Optional[str]
    directory_present: bool

class NoteCreate(BaseModel):
    date: Date
    title: str
    content: str = ""

class NoteEdit(BaseModel):
    date: Optional[Date] = None
    title: Optional[str] = None
    content: Optional[str] = None


_STATUS_BY_ERROR: list[tuple[type[CalnotesError], int]] = [
    (NoteNotFoundError, 404),
    (StorageNotReadyError, 409),
    (ConflictError, 409),
    (DirectoryCreationError, 400),
]


def _status_for(exc: CalnotesError) -> int:
    for kind, code in _STATUS_BY_ERROR:
        if isinstance(exc, kind):
            return code
    return 500


def get_repo(request: Request) -> NoteRepository:
    return request.app.state.repo


def _status(config: ConfigStore) -> StatusOut:
    directory = config.storage_directory()
    return StatusOut(
        onboarded=config.is_onboarded(),
        storage_directory=str(directory) if directory else None,
        directory_present=config.has_storage_directory(),
    )


def create_app(repo: Optional[NoteRepository] = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging()
        owned = None
        if getattr(app.state, "repo", None) is None:
            owned = ConfigStore.open()
            app.state.repo = NoteRepository(owned)
        yield
        if owned is not None:
            owned.close()

    app = FastAPI(title="calnotes API", lifespan=lifespan)
    app.state.repo = repo

    @app.exception_handler(CalnotesError)
    async def _calnotes_error(request: Request, exc: CalnotesError):
        return JSONResponse(status_code=_status_for(exc), content={"detail": str(exc)})

    # ---------- API ----------
    @app.get("/api/status", response_model=StatusOut)
    def api_status(repo: NoteRepository = Depends(get_repo)):
        return _status(repo.config)

    @app.post("/api/setup", response_model=StatusOut)
    def api_setup(payload: SetupIn, repo: NoteRepository = Depends(get_repo)):
        choose_directory(repo.config, payload.directory)
        return _status(repo.config)

    @app.get("/api/notes", response_model=list[Note])
    def api_list_notes(
        day: Optional[Date] = Query(None, alias="date"),
        start: Optional[Date] = None,
        end: Optional[Date] = None,
        repo: NoteRepository = Depends(get_repo),
    ):
        if day is not None:
            return repo.get_notes_for_date(day)
        if start is not None or end is not None:
            return repo.get_notes_between(start or Date.min, end or Date.max)
        return repo.get_notes()

    @app.post("/api/notes", response_model=Note, status_code=201)
    def api_create_note(payload: NoteCreate, repo: NoteRepository = Depends(get_repo)):
        try:
            return create_note(repo, payload.date, payload.title, payload.content)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

    @app.get("/api/notes/{note_id}", response_model=Note)
    def api_get_note(note_id: str, repo: NoteRepository = Depends(get_repo)):
        return get_note(repo, note_id)

    @app.patch("/api/notes/{note_id}", response_model=Note)
    def api_edit_note(note_id: str, payload: NoteEdit, repo: NoteRepository = Depends(get_repo)):
        try:
            return edit_note(
                repo, note_id, title=payload.title, content=payload.content, day=payload.date
            )
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

    @app.delete("/api/notes/{note_id}")
    def api_delete_note(note_id: str, repo: NoteRepository = Depends(get_repo)):
        delete_note(repo, note_id)
        return {"ok": True}

    return app


app = create_app()
