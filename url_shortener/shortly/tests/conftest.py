import os

os.environ["TESTING"] = "True"

import pytest
import fakeredis
from fastapi.testclient import TestClient
from datetime import datetime, timezone

from shortly.database import Base, get_db, SessionLocal, engine, StoreStatus
from shortly.main import app as fastapi_app
from shortly.dependencies import get_store_status
from shortly.schemas import RequestContext
from shortly.store import LinkStore
import shortly.rate_limit

IPHONE_UA = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 16_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/16.0 Mobile/15E148 Safari/604.1"
)

# Mock Redis client
@pytest.fixture(scope="function")
def redis_mock():
    original_redis = shortly.rate_limit.redis_client

    fake_redis = fakeredis.FakeStrictRedis(decode_responses=True)

    shortly.rate_limit.redis_client = fake_redis

    yield fake_redis

    shortly.rate_limit.redis_client = original_redis

@pytest.fixture(scope="function")
def db():
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

        Base.metadata.drop_all(bind=engine)

@pytest.fixture
def store(db):
    return LinkStore(db)

@pytest.fixture
def context():
    return RequestContext(
        base_url="http://short.ly",
        ip_address="127.0.0.1",
        user_agent=IPHONE_UA,
        referer="https://test.com",
        timestamp=datetime.now(timezone.utc)
    )

@pytest.fixture
def client(db, redis_mock):
    def override_get_db():
        try:
            yield db
        finally:
            pass

    fastapi_app.dependency_overrides[get_db] = override_get_db

    with TestClient(fastapi_app) as client:
        yield client

    fastapi_app.dependency_overrides = {}

@pytest.fixture
def demo_client(redis_mock):
    async def unavailable_store():
        return StoreStatus.UNAVAILABLE

    fastapi_app.dependency_overrides[get_store_status] = unavailable_store

    with TestClient(fastapi_app) as client:
        yield client

    fastapi_app.dependency_overrides = {}
