from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from courtfile.core.config import settings
from courtfile.core.logger import logger


def _engine_kwargs(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True, "pool_size": 10, "max_overflow": 20}


engine = create_engine(settings.DATABASE_URL, **_engine_kwargs(settings.DATABASE_URL))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    """Create all tables. Safe to call repeatedly."""
    from courtfile.db import models  # noqa: F401

    logger.info("Initializing database...")
    Base.metadata.create_all(bind=engine)
