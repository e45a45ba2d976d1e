import os
import sys

# Keep bcrypt cheap in tests; set before settings is imported.
os.environ.setdefault("BCRYPT_ROUNDS", "4")

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import mongomock
import pytest
from fastapi.testclient import TestClient

from auth_helper import hash_password
from database import ensure_indexes
from dependencies import get_db, get_token_service
from main import app
from tokens import TokenService


@pytest.fixture
def db():
    database = mongomock.MongoClient()["storefront_test"]
    ensure_indexes(database)
    return database


@pytest.fixture
def tokens():
    return TokenService("test-secret")


@pytest.fixture
def client(db, tokens):
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_token_service] = lambda: tokens
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    def _make(email="user@example.com", password="secret123", role=0, **fields):
        doc = {
            "name": "Test User",
            "email": email,
            "password": hash_password(password),
            "phone": "91234567",
            "address": "1 Main St",
            "answer": "blue",
            "role": role,
        }
        doc.update(fields)
        doc["_id"] = db["user"].insert_one(doc).inserted_id
        return doc
    return _make


@pytest.fixture
def admin(make_user):
    return make_user(email="admin@example.com", role=1, name="Admin")


@pytest.fixture
def auth_header(tokens):
    def _header(user):
        return {"Authorization": tokens.issue(str(user["_id"]))}
    return _header
