import pytest
from unittest.mock import MagicMock, patch
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.db import Base, get_db
from app.models import User
from app.routers import auth as auth_router
from app.routers import images as images_router
from app.services import auth as auth_service
from app.storage.s3_compat import PutResult

# --- Test Database Setup ---

SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

# StaticPool shares the single in-memory connection across sessions and threads
engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

TEST_PIN = "1234"


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(autouse=True)
def setup_database():
    """Create tables before each test, drop after."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def reset_rate_limits():
    auth_router.limiter.reset()
    images_router.limiter.reset()
    app.state.limiter.reset()
    yield


@pytest.fixture
def client():
    """Test client with DB override."""
    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def db_session():
    """Direct database session for setup."""
    session = TestingSessionLocal()
    yield session
    session.close()


@pytest.fixture
def user(db_session):
    """The family account with PIN 1234."""
    return auth_service.create_family_user(db_session, TEST_PIN)


@pytest.fixture
def auth_headers(user):
    token = auth_service.create_access_token(user.id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def other_user(db_session):
    u = User(email="guest@recipes.local", pin_hash=auth_service.hash_pin("9999"))
    db_session.add(u)
    db_session.commit()
    db_session.refresh(u)
    return u


@pytest.fixture
def store():
    """In-memory stand-in for the S3 store, patched into every router that uses it."""
    fake = MagicMock()
    counter = {"n": 0}

    def put_bytes(*, data, content_type, key=None):
        counter["n"] += 1
        key = key or f"images/test-{counter['n']}.webp"
        return PutResult(key=key, public_url=f"https://cdn.test/{key}")

    fake.put_bytes.side_effect = put_bytes
    fake.delete.return_value = True
    fake.new_key.return_value = "images/new-upload.webp"
    fake.presigned_upload_url.return_value = "https://bucket.test/images/new-upload.webp?sig=abc"

    with patch("app.routers.recipes.get_store", return_value=fake), \
         patch("app.routers.images.get_store", return_value=fake):
        yield fake


import fakeredis
import fakeredis.aioredis
from app.infra import redis_client


@pytest.fixture(autouse=True)
def mock_redis(monkeypatch):
    server = fakeredis.FakeServer()
    # Create fake clients sharing the same server
    async_redis = fakeredis.aioredis.FakeRedis(server=server, decode_responses=True)
    sync_redis = fakeredis.FakeRedis(server=server, decode_responses=True)

    # Force the clients into the infra module
    redis_client._redis_async = async_redis
    redis_client._redis_sync = sync_redis

    yield sync_redis

    # Cleanup
    redis_client._redis_async = None
    redis_client._redis_sync = None
