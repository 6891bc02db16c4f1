import os
import tempfile
from pathlib import Path

# Settings are read at import time; point them at throwaway resources first.
_tmp_dir = Path(tempfile.mkdtemp(prefix="todo-tests-"))
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_FILE", str(_tmp_dir / "app.log"))
os.environ.setdefault("SECRET_KEY", "test-secret-key-0123456789abcdef0123456789abcdef")
os.environ.setdefault("COOKIE_SECRET_KEY", "test-cookie-secret-0123456789abcdef0123456789")
os.environ.setdefault("DB_INIT_MODE", "create_all")
os.environ.setdefault("ENVIRONMENT", "test")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from app.core.database import Base, SessionLocal, engine  # noqa: E402
from app.core.security import create_access_token, create_refresh_token  # noqa: E402
from app.models.todo import Todo, PRIORITY_VALUES  # noqa: E402
from app.models.user import User  # noqa: E402
from app.services.rate_limiter import rate_limiter  # noqa: E402


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        rate_limiter.reset()


@pytest.fixture
def client(db):
    from app.main import app

    return TestClient(app)


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make_user(google_id=None, email=None, name="Test User"):
        counter["n"] += 1
        n = counter["n"]
        user = User(
            google_id=google_id or f"google-{n}",
            email=email or f"user{n}@example.com",
            name=name,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_todo(db):
    def _make_todo(user, name="Task", priority="medium", deadline=None, completed=False):
        todo = Todo(
            user_id=user.id,
            name=name,
            priority=PRIORITY_VALUES[priority],
            deadline=deadline,
            completed=completed,
        )
        db.add(todo)
        db.commit()
        db.refresh(todo)
        return todo

    return _make_todo


@pytest.fixture
def auth_headers():
    def _auth_headers(user):
        return {"Authorization": f"Bearer {create_access_token(str(user.id))}"}

    return _auth_headers


@pytest.fixture
def refresh_token_for():
    def _refresh_token_for(user):
        return create_refresh_token(str(user.id))

    return _refresh_token_for
