import os
import tempfile

# Point the app at throwaway locations before fleet_admin reads its settings
_TMP = tempfile.mkdtemp(prefix="fleet-admin-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{_TMP}/fleet_admin.db"
os.environ["API_BASE_URL"] = "http://backend.test"
os.environ["LOCAL_STORE_DIR"] = os.path.join(_TMP, "store")

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from fleet_admin.database import Base, get_db
from fleet_admin.services.notification_service import Notifier
from fleet_admin.store import LocalStore, RemoteSync


class FakeBackend:
    """httpx.MockTransport handler that records every request"""

    def __init__(self):
        self.requests = []
        self.status_code = 200

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, json={})

    def calls(self, method=None):
        return [
            (r.method, r.url.path)
            for r in self.requests
            if method is None or r.method == method
        ]


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def sync(backend):
    client = httpx.Client(base_url="http://backend.test", transport=httpx.MockTransport(backend))
    remote = RemoteSync(client=client, background=False)
    yield remote
    remote.close()


@pytest.fixture
def store(tmp_path):
    return LocalStore(tmp_path / "store")


@pytest.fixture
def notifier(store, sync):
    return Notifier(store, sync)


@pytest.fixture
def db_session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def client(db_session_factory):
    from fleet_admin.main import app

    def override_get_db():
        db = db_session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
