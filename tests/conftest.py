import pytest

from db import get_session
from main import create_app
from services.catalog_store import SqlCatalogStore
from tests import factories


@pytest.fixture
def app(tmp_path):
    """Return a Flask app bound to a throwaway SQLite catalog."""
    app = create_app(f"sqlite:///{tmp_path / 'catalog.sqlite'}")
    app.config.update(TESTING=True)
    return app


@pytest.fixture
def client(app):
    """Return a Flask test client."""
    return app.test_client()


@pytest.fixture
def db_session(app):
    """Open a session on the test catalog and point the factories at it."""
    session = get_session()
    for factory_cls in factories.ALL_FACTORIES:
        factory_cls._meta.sqlalchemy_session = session
    yield session
    session.close()


@pytest.fixture
def store(db_session):
    return SqlCatalogStore(db_session)
