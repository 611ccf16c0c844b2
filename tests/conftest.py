import pytest
from sqlalchemy.orm import Session

import sacrud
from sacrud.storage import SessionStorage

from models import Base, make_engine, seed


@pytest.fixture(autouse=True)
def _clear_config_cache():
    sacrud.config.get_config.cache_clear()
    yield
    sacrud.config.get_config.cache_clear()


@pytest.fixture
def engine():
    engine = make_engine()
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        seed(session)
        yield session


@pytest.fixture
def storage(session) -> SessionStorage:
    return SessionStorage(session)
