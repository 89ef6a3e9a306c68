from contextlib import contextmanager
from typing import Generator, Iterator
import logging

from dotenv import load_dotenv
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine

from core.config import settings

load_dotenv()
logger = logging.getLogger(__name__)

DATABASE_URL = settings.DATABASE_URL
IN_MEMORY_URLS = ("sqlite://", "sqlite:///:memory:")


# ============================================================
# ✅ Engine (Postgres in production, SQLite for local dev and tests)
# ============================================================
def _engine_kwargs(url: str) -> dict:
    kwargs = {"echo": False, "pool_pre_ping": True}
    if url.startswith("sqlite"):
        logger.warning("⚠️ Using SQLite database: %s", url)
        # Background seeding jobs write from a worker thread
        kwargs["connect_args"] = {"check_same_thread": False}
        if url in IN_MEMORY_URLS:
            kwargs["poolclass"] = StaticPool
    elif settings.IS_PRODUCTION:
        logger.info("✅ Using production database")
    return kwargs


engine = create_engine(DATABASE_URL, **_engine_kwargs(DATABASE_URL))


# ============================================================
# ✅ Schema
# ============================================================
def create_db_and_tables() -> None:
    """Create every table registered in models.models. Runs at app startup."""
    import models.models  # noqa: F401

    try:
        SQLModel.metadata.create_all(engine)
        logger.info("✅ Earth Care Network tables ready.")
    except Exception as e:
        logger.error(f"❌ Failed to create tables: {e}")
        raise


# ============================================================
# ✅ Sessions
# ============================================================
def get_session() -> Generator[Session, None, None]:
    """FastAPI dependency: one session per request."""
    with Session(engine) as session:
        yield session


@contextmanager
def session_scope() -> Iterator[Session]:
    """
    Session for work outside a request (background seeding jobs, scripts).
    Rolls back on error so a failed job never leaves a half-written row behind.
    """
    session = Session(engine)
    try:
        yield session
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
