import os
import sys
import tempfile

import pytest

ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

# delve binds its engine at import time, so the throwaway db must be set first
os.environ.setdefault(
    "DATABASE_URL",
    "sqlite:///" + os.path.join(tempfile.mkdtemp(prefix="delve-tests-"), "test.db"),
)

from delve import create_app, db  # noqa: E402
from delve.services import sessions  # noqa: E402


def pytest_configure(config):
    config.addinivalue_line("markers", "db_isolation: drop and recreate all tables before the test")


@pytest.fixture(scope="session")
def test_app():
    flask_app = create_app()
    flask_app.config["TESTING"] = True
    return flask_app


@pytest.fixture()
def client(test_app):
    return test_app.test_client()


@pytest.fixture(autouse=True)
def _push_app_context(test_app):
    with test_app.app_context():
        yield
        db.session.remove()


@pytest.fixture(autouse=True)
def _conditional_db_isolation(request, test_app):
    if request.node.get_closest_marker("db_isolation") is None:
        yield
        return
    with test_app.app_context():
        db.session.remove()
        db.drop_all()
        db.create_all()
    yield


@pytest.fixture(autouse=True)
def _clear_sessions():
    sessions.clear_sessions()
    yield
    sessions.clear_sessions()
