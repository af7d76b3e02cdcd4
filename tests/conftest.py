import os
import tempfile

# Must be set before the app (and its engine) is imported.
_DB_DIR = tempfile.mkdtemp(prefix="survey-responses-")
os.environ["DB_URL"] = f"sqlite:///{os.path.join(_DB_DIR, 'test.sqlite')}"
os.environ["GEOLOCATION_ENABLED"] = "0"
os.environ.pop("API_KEY", None)

import pytest

from app.backend.config import get_settings
from app.database import crud


@pytest.fixture(autouse=True)
def setup_db():
    """Fresh tables for every test."""
    from app.database.db import engine
    from app.database.models import Base

    Base.metadata.create_all(engine)
    yield
    Base.metadata.drop_all(engine)


@pytest.fixture(autouse=True)
def reset_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def db():
    from app.database.db import SessionLocal

    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def survey(db):
    return crud.create_survey(db, title="How did we do?", unique_link_id="k3x9a1bz")


@pytest.fixture
def other_survey(db):
    return crud.create_survey(db, title="Onboarding feedback", unique_link_id="p0q8w7er")
