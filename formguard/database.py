from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from formguard.settings import get_settings


class Base(DeclarativeBase):
    pass


def _connect_args(url: str) -> dict:
    # SQLite connections are shared with the threadpool that runs sync endpoints.
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


database_url = get_settings().database_url
engine = create_engine(database_url, connect_args=_connect_args(database_url), pool_pre_ping=True)
SessionLocal = sessionmaker(bind=engine, autoflush=False)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
