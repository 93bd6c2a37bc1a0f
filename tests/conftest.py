"""Shared pytest fixtures."""

from __future__ import annotations

import sys
from collections.abc import Iterator
from pathlib import Path

import pytest
from alembic import command
from alembic.config import Config
from sqlalchemy import delete

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from storefront_fx import create_app  # noqa: E402
from storefront_fx.database import get_engine, get_session_factory  # noqa: E402
from storefront_fx.models import ExchangeRate  # noqa: E402
from storefront_fx.services.exchange_rates import get_service  # noqa: E402


@pytest.fixture(scope="session")
def app(tmp_path_factory: pytest.TempPathFactory) -> Iterator:
    """Session-wide Flask application configured with a temporary database."""

    db_dir = tmp_path_factory.mktemp("db")
    database_url = f"sqlite:///{db_dir / 'test.db'}"

    alembic_cfg = Config(str(ROOT_DIR / "alembic.ini"))
    alembic_cfg.set_main_option("sqlalchemy.url", database_url)
    command.upgrade(alembic_cfg, "head")

    flask_app = create_app("testing", overrides={"SQLALCHEMY_DATABASE_URI": database_url})

    yield flask_app

    get_engine(flask_app).dispose()
    command.downgrade(alembic_cfg, "base")


@pytest.fixture()
def client(app):
    """Provide a Flask test client."""

    with app.test_client() as client:
        yield client


@pytest.fixture()
def service(app):
    return get_service(app)


@pytest.fixture()
def clean_rates(app) -> Iterator[None]:
    """Empty the exchange_rates table before and after the test."""

    session_factory = get_session_factory(app)

    def _clear() -> None:
        with session_factory() as session, session.begin():
            session.execute(delete(ExchangeRate))

    _clear()
    yield
    _clear()


@pytest.fixture()
def repository(service, clean_rates):
    """The application's RateRepository backed by an empty table."""

    return service.repository


@pytest.fixture()
def seeded(service, clean_rates):
    """Store the built-in reference rates and return the service."""

    service.seed_initial_rates()
    return service
