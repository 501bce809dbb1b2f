"""
YourVoice - test configuration and fixtures

The environment is set before any yourvoice module is imported, so the
settings object picks up a throwaway SQLite database and the in-memory
cache. The evidence bucket lives in moto's mocked S3 for the whole session.
"""
import os
import sys
import tempfile
from pathlib import Path

import pytest

_tmp_dir = tempfile.mkdtemp(prefix="yourvoice-test-")

os.environ['DATABASE_URL'] = f"sqlite:///{Path(_tmp_dir) / 'test.db'}"
os.environ['ADMIN_EMAIL'] = 'admin@yourvoice.test'
os.environ['ADMIN_PASSWORD'] = 'correct-horse-42'
os.environ['S3_ENDPOINT_URL'] = ''
os.environ['S3_REGION'] = 'us-east-1'
os.environ['AWS_ACCESS_KEY_ID'] = 'testing'
os.environ['AWS_SECRET_ACCESS_KEY'] = 'testing'
os.environ['REDIS_ENABLED'] = 'false'
os.environ['LOG_LEVEL'] = 'WARNING'

project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))
sys.path.insert(0, str(Path(__file__).parent))

import boto3
from fastapi.testclient import TestClient
from moto import mock_aws

from yourvoice.extensions import engine, SessionLocal
from yourvoice.main import app
from yourvoice.models import Base
from yourvoice.utils.cache import cache_manager

ADMIN_EMAIL = os.environ['ADMIN_EMAIL']
ADMIN_PASSWORD = os.environ['ADMIN_PASSWORD']


@pytest.fixture(scope='session', autouse=True)
def s3():
    """Mocked S3 shared by every test; the evidence bucket is created on first use"""
    with mock_aws():
        yield boto3.client("s3", region_name="us-east-1")


@pytest.fixture(scope='function')
def db():
    """Fresh tables and a session for each test"""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        cache_manager.clear()


@pytest.fixture
def client(db):
    """Test client running the application lifespan"""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def admin_client(client):
    """Test client holding a valid admin_token cookie"""
    response = client.post(
        "/api/admin/login",
        json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD}
    )
    assert response.status_code == 200
    return client
