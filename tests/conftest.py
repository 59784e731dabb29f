"""Shared fixtures: a throwaway SQLite database and seeded profiles."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

TEST_DB_PATH = Path(__file__).parent / "test.db"
os.environ["DATABASE_URL"] = f"sqlite:///{TEST_DB_PATH}"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["APP_TIMEZONE"] = "UTC"
os.environ.pop("SENDGRID_API_KEY", None)
os.environ.pop("SENDGRID_SENDER", None)

from app.domain.entities import Profile  # noqa: E402
from app.infrastructure import database  # noqa: E402
from app.infrastructure.notifications import ChangeFeed  # noqa: E402
from app.infrastructure.repositories import ProfileRepository  # noqa: E402
from app.infrastructure.security import create_access_token  # noqa: E402

PROFILE_NAMES = {
    1: "Alice",
    2: "Bob",
    3: "Carol",
    4: "Dave",
    5: "Erin",
    6: "Frank",
}


@pytest.fixture(autouse=True)
def setup_database():
    """Give every test empty tables."""

    database.Base.metadata.drop_all(bind=database.engine, checkfirst=True)
    database.initialize_database()
    yield
    database.Base.metadata.drop_all(bind=database.engine, checkfirst=True)


@pytest.fixture(scope="session", autouse=True)
def remove_test_database():
    yield
    database.engine.dispose()
    if TEST_DB_PATH.exists():
        TEST_DB_PATH.unlink()


@pytest.fixture()
def session():
    db = database.SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def feed() -> ChangeFeed:
    return ChangeFeed()


@pytest.fixture()
def profiles(session) -> dict[int, Profile]:
    repository = ProfileRepository(session)
    return {
        profile_id: repository.create(
            Profile(
                id=profile_id,
                full_name=name,
                email=f"{name.lower()}@example.com",
                avatar_url=f"https://cdn.example.com/{name.lower()}.png",
            )
        )
        for profile_id, name in PROFILE_NAMES.items()
    }


@pytest.fixture()
def auth_headers():
    """Return a builder of bearer headers for a profile id."""

    def build(profile_id: int) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(profile_id)}"}

    return build


@pytest.fixture()
def client():
    from fastapi.testclient import TestClient

    from main import create_app

    with TestClient(create_app()) as test_client:
        yield test_client
