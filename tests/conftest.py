"""
Shared fixtures: a temporary SQLite database behind the real gateway
"""

from datetime import datetime

import pytest
from sqlalchemy.orm import sessionmaker

from src.analytics.gateway import SqlAlchemyGateway
from src.database.connection import build_engine, create_tables

# Saturday; the current week starts Monday 2024-06-10
NOW = datetime(2024, 6, 15, 12, 0, 0)


@pytest.fixture
def sqlite_engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'crm_test.db'}")
    create_tables(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(sqlite_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=sqlite_engine)


@pytest.fixture
def gateway(session_factory):
    return SqlAlchemyGateway(session_factory)


@pytest.fixture
def add_rows(session_factory):
    """Insert model instances and commit"""
    def _add(*rows):
        session = session_factory()
        try:
            session.add_all(rows)
            session.commit()
        finally:
            session.close()
    return _add


@pytest.fixture
def clock():
    return lambda: NOW
