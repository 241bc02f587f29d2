"""
Database configuration and session management.

The engine reads two tables: the single `store` row that backs the
organization profile, and `document_artifacts`, written by callers that
persist generated documents.
"""

import logging
import os

from sqlalchemy import create_engine, text
from sqlalchemy.orm import declarative_base, sessionmaker

logger = logging.getLogger("bizdocs.database")

DATABASE_URL = os.getenv("DATABASE_URL")
# Dev fallback when no managed database is configured.
if not DATABASE_URL:
    DATABASE_URL = "sqlite:///./dev.db"

if DATABASE_URL.startswith("sqlite:"):
    engine = create_engine(DATABASE_URL, connect_args={"check_same_thread": False})
else:
    engine = create_engine(DATABASE_URL, pool_pre_ping=True)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """Dependency for getting database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind=None):
    """Initialize database tables."""
    # Import models so SQLAlchemy registers all tables on Base.metadata
    from bizdocs import models  # noqa: F401

    target = bind or engine
    Base.metadata.create_all(bind=target)

    # `create_all` does not add indexes to tables that already existed.
    try:
        with target.begin() as conn:
            conn.execute(
                text(
                    "CREATE INDEX IF NOT EXISTS ix_document_artifacts_kind_subject "
                    "ON document_artifacts (kind, subject_ref)"
                )
            )
    except Exception as e:
        logger.warning("artifact_index_upgrade_failed", extra={"error": str(e)})
