from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from circuit_challenge.core.config import settings


def _ensure_sqlite_dir(url: str):
    """ Create the folder of a file based sqlite database"""
    prefix = "sqlite:///"
    if url.startswith(prefix) and ":memory:" not in url:
        Path(url[len(prefix):]).parent.mkdir(parents=True, exist_ok=True)


def _is_memory_sqlite(url: str) -> bool:
    return url in ("sqlite://", "sqlite:///:memory:")


def make_engine(url: str):
    """ Engine for url. In-memory sqlite shares one connection so every session sees the same tables"""
    if not url.startswith("sqlite"):
        return create_engine(url)
    if _is_memory_sqlite(url):
        return create_engine(url, connect_args={"check_same_thread": False}, poolclass=StaticPool)
    _ensure_sqlite_dir(url)
    return create_engine(url, connect_args={"check_same_thread": False})


engine = make_engine(settings.DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """ Yields a db session per request"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
