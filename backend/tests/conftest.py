"""
Pytest configuration and fixtures
"""
import sys
from pathlib import Path

import pytest
from sqlalchemy.orm import Session

# Add backend directory to path for imports
backend_dir = Path(__file__).parent.parent
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

from app.core.config import get_settings
from app.core.database import (Base, get_db, get_engine, get_session_local,
                               reset_engine)

OWNER = "user-alice"
OTHER_OWNER = "user-bob"


@pytest.fixture(scope="function")
def database_url(tmp_path, monkeypatch):
    """Point the app at a fresh file-backed SQLite database"""
    url = f"sqlite:///{tmp_path / 'prompt_composer_test.db'}"
    monkeypatch.setenv("DATABASE_URL", url)
    monkeypatch.delenv("MAX_COMPONENTS_PER_OWNER", raising=False)
    monkeypatch.delenv("MAX_PRESETS_PER_OWNER", raising=False)
    get_settings.cache_clear()
    reset_engine()
    yield url
    reset_engine()
    get_settings.cache_clear()


@pytest.fixture(scope="function")
def session_factory(database_url):
    """Session factory bound to a freshly created schema"""
    import app.models  # noqa: F401 - register models with Base.metadata
    Base.metadata.create_all(bind=get_engine())
    return get_session_local()


@pytest.fixture(scope="function")
def db(session_factory) -> Session:
    """Create a database session for testing"""
    session = session_factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture(scope="function")
def client(db: Session):
    """Create test client with database dependency override"""
    from fastapi.testclient import TestClient
    from main import app

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    test_client = TestClient(app)
    yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def owner_headers():
    return {"X-Owner-Id": OWNER}


@pytest.fixture
def other_owner_headers():
    return {"X-Owner-Id": OTHER_OWNER}


@pytest.fixture
def component_service(db):
    from app.services.component_service import ComponentService
    return ComponentService(db)


@pytest.fixture
def preset_service(db):
    from app.services.preset_service import PresetService
    return PresetService(db)


@pytest.fixture
def make_component(component_service):
    """Factory: make_component("role", content="...", owner_id=...)"""
    counter = {"n": 0}

    def _make(kind, content=None, owner_id=OWNER, name=None, **kwargs):
        counter["n"] += 1
        return component_service.create_component(
            owner_id,
            kind=kind,
            name=name or f"{kind} component {counter['n']}",
            content=content or f"{kind} content {counter['n']}",
            **kwargs
        )

    return _make
