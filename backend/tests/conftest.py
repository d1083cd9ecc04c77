import os, tempfile
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from main import app, get_generator
from db import Base, get_db, _set_sqlite_pragma
from fakes import InMemoryStore

@pytest.fixture(scope="session")
def tmp_db_path():
    fd, path = tempfile.mkstemp(suffix=".db")
    os.close(fd)
    return path

@pytest.fixture(scope="session")
def test_engine(tmp_db_path):
    url = f"sqlite:///{tmp_db_path}"
    engine = create_engine(url, connect_args={"check_same_thread": False})
    # same foreign-key pragma as the app engine, so deletes cascade
    event.listen(engine, "connect", _set_sqlite_pragma)
    Base.metadata.create_all(bind=engine)
    return engine

@pytest.fixture(scope="session")
def TestingSessionLocal(test_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=test_engine)

@pytest.fixture(scope="session", autouse=True)
def override_di(TestingSessionLocal):
    def _get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()
    app.dependency_overrides[get_db] = _get_db

GENERATED = [
    {"type": "rating", "text": "How do you rate onboarding?", "required": True, "order_index": 7},
    {"type": "dropdown", "text": "Which office?", "options": ["North", "South"], "required": False},
    {"type": "long_text", "text": "Anything else?", "required": False},
]

def fake_generate(prompt):
    return [dict(q) for q in GENERATED]

@pytest.fixture
def client():
    # Mock AI question generation
    app.dependency_overrides[get_generator] = lambda: fake_generate
    yield TestClient(app)
    app.dependency_overrides.pop(get_generator, None)

@pytest.fixture
def db_session(TestingSessionLocal):
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()

@pytest.fixture
def store():
    return InMemoryStore()
