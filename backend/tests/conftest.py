import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from backend.analytics import config  # noqa: E402  pylint: disable=wrong-import-position
from backend.analytics.models import Base, Profile, Project  # noqa: E402  pylint: disable=wrong-import-position

DAY = datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def fingerprint_secret(monkeypatch):
    monkeypatch.setenv("ANALYTICS_FINGERPRINT_SECRET", "test-secret")
    config.reset_settings()
    yield
    config.reset_settings()


@pytest.fixture
def db_session(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'analytics.db'}",
        connect_args={"check_same_thread": False},
        future=True,
    )
    Base.metadata.create_all(bind=engine)
    Session = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    with Session() as session:
        yield session
    engine.dispose()


@pytest.fixture
def alice(db_session):
    profile = Profile(slug="alice")
    db_session.add(profile)
    db_session.flush()
    profile_id = profile.id
    db_session.add(Project(id="proj1", profile_id=profile_id, title="Compiler Explorer"))
    db_session.commit()
    return profile_id


SAFARI_IPHONE_UA = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.0 Mobile/15E148 Safari/604.1"
)
