# tests/conftest.py
import os
import sys
import pytest

# so that `from app import create_app` works when run from the repo root
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from app import create_app
from extensions import db
from store import ContentStore


@pytest.fixture()
def app(tmp_path):
    app = create_app({
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": "sqlite://",
        "SEED_DEMO": False,
        "SECRET_KEY": "test-secret",
        "UPLOAD_FOLDER": str(tmp_path / "uploads"),
    })
    with app.app_context():
        yield app


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def store(app):
    return ContentStore(db.session)


@pytest.fixture()
def users(store):
    """Admin A and regular user B."""
    admin_id = store.create_user("Anna", "anna@example.ch", "hash-a", role="admin")
    user_id = store.create_user("Bruno", "bruno@example.ch", "hash-b")
    return {"admin": admin_id, "user": user_id}


@pytest.fixture()
def make_content(store):
    def _make(owner_id, title="Die Zeitmaschine!", category="sifi", image_path="/uploads/a.png"):
        return store.create_content(
            title=title,
            description="Ein Klassiker.",
            category=category,
            image_path=image_path,
            owner_id=owner_id,
        )
    return _make
