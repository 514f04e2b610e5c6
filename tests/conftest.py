import fnmatch
import os
import sys
from datetime import date
from types import SimpleNamespace

import pytest

CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.dirname(CURRENT_DIR)
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

# Настройки читаются при импорте, поэтому окружение задаём до него
os.environ.setdefault("DATABASE_URL", "sqlite:///./test_progress.db")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/99")
os.environ.setdefault("SECRET_KEY", "test-secret")

from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from progress_tracker.application.ports import ICache
from progress_tracker.config import settings
from progress_tracker.infrastructure.db import get_db
from progress_tracker.infrastructure.models import Base
from progress_tracker.infrastructure.repositories import CatalogRepository, ProgressRepository
from progress_tracker.interfaces.http.deps import get_cache, get_today


class DictCache(ICache):
    """In-process cache double with the same key semantics as Cache."""

    def __init__(self):
        self.data = {}

    def get(self, key):
        return self.data.get(key)

    def set(self, key, value, ttl=None):
        self.data[key] = value
        return True

    def delete(self, key):
        self.data.pop(key, None)
        return True

    def delete_pattern(self, pattern):
        keys = [k for k in self.data if fnmatch.fnmatch(k, pattern)]
        for k in keys:
            del self.data[k]
        return len(keys)

    def clear(self):
        return self.delete_pattern("*")


@pytest.fixture
def engine():
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def store(db):
    return ProgressRepository(db)


@pytest.fixture
def catalogs(db):
    return CatalogRepository(db)


@pytest.fixture
def cache():
    return DictCache()


@pytest.fixture
def make_catalog(catalogs):
    def _make(name="aptitude", size=50, title=None):
        catalogs.create(name, title or name.replace("_", " ").title())
        for i in range(1, size + 1):
            catalogs.append_item(name, key=f"{name}-{i}", content=f"item {i}")
        return catalogs.get(name)
    return _make


@pytest.fixture
def clock():
    """Дата, которую видит API как «сегодня»"""
    return SimpleNamespace(today=date(2025, 12, 4))


def make_token(sub="learner@example.com", role="student", caps=None, secret=None):
    payload = {"sub": sub, "role": role}
    if caps is not None:
        payload["caps"] = caps
    return jwt.encode(payload, secret or settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def auth_headers(**kwargs):
    return {"Authorization": f"Bearer {make_token(**kwargs)}"}


@pytest.fixture
def client(session_factory, cache, clock):
    from progress_tracker.main import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_cache] = lambda: cache
    app.dependency_overrides[get_today] = lambda: clock.today
    yield TestClient(app)
    app.dependency_overrides.clear()
