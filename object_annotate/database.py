"""Engine and declarative base construction for annotation destinations."""

from __future__ import annotations

from sqlalchemy import Engine, create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker


def make_engine(dsn: str, db_user: str | None = None, db_pass: str | None = None) -> Engine:
    """Create the engine for one destination, merging credentials into the URL."""
    url = make_url(dsn)
    if db_user is not None:
        url = url.set(username=db_user)
    if db_pass is not None:
        url = url.set(password=db_pass)
    return create_engine(url, echo=False)


def make_base() -> type[DeclarativeBase]:
    """Return a fresh declarative base with its own metadata.

    Each destination gets one so equal table names on different
    databases never collide in a shared MetaData.
    """
    class Base(DeclarativeBase):
        pass

    return Base


def make_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, expire_on_commit=False)
