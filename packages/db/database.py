import os
from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker


def get_database_url() -> str:
    url = os.getenv("DATABASE_URL")
    if url:
        return url

    db_path = os.getenv("UNMATCH_DB_PATH") or str(Path.home() / ".unmatch" / "app.db")
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    return f"sqlite:///{db_path}"


class Base(DeclarativeBase):
    pass


def _connect_args(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


_url = get_database_url()
engine = create_engine(_url, pool_pre_ping=True, connect_args=_connect_args(_url))
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)
