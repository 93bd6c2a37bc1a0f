"""SQLAlchemy engine and session factory wiring."""

from __future__ import annotations

from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker

ENGINE_EXT_KEY = "sqlalchemy_engine"
SESSION_FACTORY_EXT_KEY = "sqlalchemy_session_factory"


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""


def create_session_factory(engine: Engine) -> sessionmaker:
    """Return a session factory whose objects stay readable after commit."""

    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def init_app(app: Any) -> sessionmaker:
    """Create the engine and session factory for the Flask application.

    Each application owns its own engine so that several apps (tests, CLI)
    can point at different databases within one process.
    """

    existing = app.extensions.get(SESSION_FACTORY_EXT_KEY)
    if existing is not None:
        return existing

    database_uri = app.config["SQLALCHEMY_DATABASE_URI"]
    engine = create_engine(database_uri, future=True)
    session_factory = create_session_factory(engine)

    app.extensions[ENGINE_EXT_KEY] = engine
    app.extensions[SESSION_FACTORY_EXT_KEY] = session_factory
    return session_factory


def get_engine(app: Any) -> Engine:
    """Return the engine attached to `app`; raise if not yet initialized."""

    engine = app.extensions.get(ENGINE_EXT_KEY)
    if engine is None:
        raise RuntimeError("Database engine has not been initialized. Call init_app first.")
    return engine


def get_session_factory(app: Any) -> sessionmaker:
    """Return the session factory attached to `app`."""

    factory = app.extensions.get(SESSION_FACTORY_EXT_KEY)
    if factory is None:
        raise RuntimeError("Session factory has not been initialized. Call init_app first.")
    return factory
