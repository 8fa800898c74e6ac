import os

# Must be set before brigade.core.config is imported.
os.environ.setdefault("ENV", "test")
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("JWT_ACCESS_SECRET", "test-access-secret")
os.environ.setdefault("JWT_REFRESH_SECRET", "test-refresh-secret")
os.environ.setdefault("JWT_TEAM_MEMBER_SECRET", "test-team-member-secret")
os.environ.setdefault("INVITE_SECRET", "test-invite-secret")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("SUPER_ADMIN_BOOTSTRAP", "0")
os.environ.setdefault("FRONTEND_URL", "https://app.example.com")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from brigade.core.abuse_guard import AbuseGuard  # noqa: E402
from brigade.core.database import Base, get_db  # noqa: E402
from brigade.deps import get_abuse_guard  # noqa: E402
import brigade.models  # noqa: E402,F401


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield factory
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def guard():
    return AbuseGuard()


@pytest.fixture
def client(session_factory, guard):
    from brigade.main import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_abuse_guard] = lambda: guard
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
