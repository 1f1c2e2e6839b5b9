import os
import tempfile
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient

# Ensure tests always use SQLite to avoid requiring Postgres drivers
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.pop("SEED_ADMIN_PASSWORD", None)

from refer2earn import crud, security
from refer2earn.database import Base, get_db
from refer2earn.main import app
from refer2earn.token import create_session_token


@pytest.fixture(scope="session")
def test_db_url():
    # Use a temporary SQLite file to persist across tests within a session
    db_fd, db_path = tempfile.mkstemp(prefix="test_refer2earn_", suffix=".db")
    os.close(db_fd)
    url = f"sqlite:///{db_path}"
    yield url
    try:
        os.remove(db_path)
    except FileNotFoundError:
        pass


@pytest.fixture()
def db_session(test_db_url):
    engine = create_engine(test_db_url, connect_args={"check_same_thread": False})
    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    # Create all tables
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)
    # Ensure file handles are released on Windows
    engine.dispose()


@pytest.fixture()
def client(db_session):
    # Override the dependency to use the test session
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def make_user(db_session):
    def _make_user(username="alice", email=None, password="password123", is_admin=False, referral_code=None):
        user = crud.create_user(
            db_session,
            username=username,
            email=email or f"{username}@example.com",
            hashed_password=security.hash_password(password),
            referral_code=referral_code or f"{username.upper()}-CODE",
            role="recruiter" if is_admin else "candidate",
            is_admin=is_admin,
        )
        db_session.commit()
        return user

    return _make_user


@pytest.fixture()
def admin(make_user):
    return make_user("admin", is_admin=True, referral_code="ADMIN123")


@pytest.fixture()
def auth_headers():
    def _headers(user) -> dict:
        return {"Authorization": f"Bearer {create_session_token(user.id)}"}

    return _headers
