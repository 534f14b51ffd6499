import os

os.environ["ENV"] = "test"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from joysync.core.changes import ChangeNotifier
from joysync.db import Base, build_engine, get_db, init_db
from joysync.main import create_app

pytest_plugins = [
    "tests.fixtures.profile_fixtures",
    "tests.fixtures.message_fixtures",
]


@pytest.fixture(scope="function")
def engine():
    engine = build_engine("sqlite://")
    init_db(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture(scope="function")
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def notifier():
    return ChangeNotifier()


@pytest.fixture(scope="function")
def app(db, notifier):
    app = create_app(testing=True)
    app.state.notifier = notifier

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    yield app
    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def client(app):
    return TestClient(app)


@pytest.fixture(scope="function")
def auth_headers(setup_profile):
    return {"X-User-Id": setup_profile.user_id}
