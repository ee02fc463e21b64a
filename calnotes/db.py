from pathlib import Path
import os
from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, Session, create_engine
from contextlib import contextmanager

SETTINGS_ENV = "CALNOTES_SETTINGS_PATH"


def default_settings_path() -> Path:
    env_path = os.getenv(SETTINGS_ENV)
    if env_path:
        return Path(env_path)
    return Path.home() / ".calnotes" / "settings.db"


def create_settings_engine(path: Path | None = None) -> Engine:
    db_path = Path(path) if path is not None else default_settings_path()
    db_path.parent.mkdir(parents=True, exist_ok=True)
    # the API serves requests from a thread pool
    engine = create_engine(
        f"sqlite:///{db_path}", echo=False, connect_args={"check_same_thread": False}
    )
    # table classes register themselves on import
    from . import models  # noqa: F401
    SQLModel.metadata.create_all(engine)
    return engine


@contextmanager
def session_scope(engine: Engine):
    # keep objects alive after commit so returned models retain values
    session = Session(engine, expire_on_commit=False)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
