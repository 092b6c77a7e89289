"""
Database configuration - SQLAlchemy engine and session factory
SQLite by default, any SQLAlchemy URL works
"""
import json
import logging
from pathlib import Path
from typing import Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base, Session

from campusbot.core.config import settings

logger = logging.getLogger(__name__)


def _is_sqlite(url: str) -> bool:
    return url.startswith("sqlite")


engine = create_engine(
    settings.DATABASE_URL,
    connect_args={"check_same_thread": False} if _is_sqlite(settings.DATABASE_URL) else {},
    pool_pre_ping=not _is_sqlite(settings.DATABASE_URL),
    echo=settings.DEBUG
)


@event.listens_for(Engine, "connect")
def set_sqlite_pragma(dbapi_connection, connection_record):
    """Enforce foreign keys and WAL on SQLite connections only"""
    if type(dbapi_connection).__module__.split(".")[0] not in ("sqlite3", "pysqlite2"):
        return
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA synchronous=NORMAL")
    cursor.close()


SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db_dependency():
    """FastAPI dependency injection"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind: Optional[Engine] = None, seed_file: Optional[Path] = None):
    """Create tables and load the seed knowledge pack into an empty database"""
    from campusbot.models import knowledge, analytics  # noqa: F401  (register models)

    bind = bind or engine
    Base.metadata.create_all(bind=bind)

    seed_file = seed_file or settings.SEED_FILE
    if seed_file:
        factory = sessionmaker(autocommit=False, autoflush=False, bind=bind)
        with factory() as db:
            seed_knowledge(db, Path(seed_file))


def seed_knowledge(db: Session, path: Path) -> int:
    """
    Load a JSON knowledge pack: {"categories": [...], "entries": [...]}.
    Skipped when the database already holds categories.
    Returns the number of entries inserted.
    """
    from campusbot.models.knowledge import KnowledgeCategory, KnowledgeItem

    if db.query(KnowledgeCategory).first() is not None:
        logger.info("Knowledge base already populated, skipping seed %s", path)
        return 0
    if not path.exists():
        logger.warning("Seed file %s not found", path)
        return 0

    data = json.loads(path.read_text(encoding="utf-8"))

    for cat in data.get("categories", []):
        db.add(KnowledgeCategory(
            id=cat.get("id"),
            name=cat["name"],
            description=cat.get("description"),
            is_active=cat.get("active", True)
        ))
    db.flush()

    count = 0
    for entry in data.get("entries", []):
        keywords = entry.get("keywords", "")
        if isinstance(keywords, list):
            keywords = ",".join(keywords)
        db.add(KnowledgeItem(
            category_id=entry["category_id"],
            keywords=keywords,
            question=entry["question"],
            answer=entry["answer"],
            priority=entry.get("priority", 1),
            is_active=entry.get("active", True)
        ))
        count += 1

    db.commit()
    logger.info("Seeded %d knowledge entries from %s", count, path)
    return count
