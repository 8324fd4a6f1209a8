import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from billsplit.db import Base, get_db
from billsplit.main import app


@pytest.fixture
def db_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    try:
        yield TestingSession
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def client(db_session):
    def override_get_db():
        db = db_session()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(client):
    def _make(name, email=None):
        resp = client.post("/api/users/", json={"name": name, "email": email})
        assert resp.status_code == 201, resp.text
        return resp.json()
    return _make


@pytest.fixture
def trip(client, make_user):
    """Alice owns a group with Bob and Carol."""
    alice = make_user("Alice", "alice@example.com")
    bob = make_user("Bob", "bob@example.com")
    carol = make_user("Carol", "carol@example.com")
    resp = client.post(
        "/api/groups/",
        json={
            "name": "Weekend Getaway",
            "description": "Entertainment Group",
            "owner_id": alice["id"],
            "member_ids": [bob["id"], carol["id"]],
        },
    )
    assert resp.status_code == 201, resp.text
    return {"group": resp.json(), "alice": alice, "bob": bob, "carol": carol}
