from __future__ import annotations

import os
from pathlib import Path
import tempfile

_TEST_DB_DIR = Path(tempfile.mkdtemp(prefix="unmatch-tests-"))
os.environ.setdefault("DATABASE_URL", f"sqlite:///{_TEST_DB_DIR / 'app.db'}")

import pytest  # noqa: E402
from alembic import command  # noqa: E402
from alembic.config import Config  # noqa: E402
from sqlalchemy import text  # noqa: E402

from packages.db.database import SessionLocal, get_database_url  # noqa: E402

TABLES = (
    "urge_events",
    "progress",
    "subscription_state",
    "user_profile",
    "content_progress",
    "content",
    "daily_checkin",
)


@pytest.fixture(scope="session", autouse=True)
def apply_migrations() -> None:
    base_dir = Path(__file__).resolve().parents[1]
    alembic_ini = base_dir / "packages" / "db" / "alembic.ini"
    alembic_dir = base_dir / "packages" / "db" / "alembic"

    config = Config(str(alembic_ini))
    config.set_main_option("script_location", str(alembic_dir))
    config.set_main_option("sqlalchemy.url", get_database_url())
    command.upgrade(config, "head")


@pytest.fixture(autouse=True)
def clean_db() -> None:
    with SessionLocal() as session:
        for table in TABLES:
            session.execute(text(f"DELETE FROM {table}"))
        session.commit()
