from dataclasses import dataclass

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from hiretrack.database import get_db, init_db
from hiretrack.main import app
from hiretrack.services.record_store import RecordStore
from hiretrack.services.session_store import session_store


def _set_sqlite_pragmas(dbapi_conn, connection_record):
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@dataclass
class Org:
    tenant_id: str
    user_id: str
    token: str

    @property
    def headers(self) -> dict:
        return {"Authorization": f"Bearer {self.token}"}


@pytest.fixture
def test_db(tmp_path):
    db_path = tmp_path / "hiretrack.sqlite"
    engine = create_engine(
        f"sqlite:///{db_path}",
        connect_args={"check_same_thread": False},
    )
    event.listen(engine, "connect", _set_sqlite_pragmas)
    TestSession = sessionmaker(bind=engine, autoflush=False, autocommit=False)

    init_db(db_path)

    def override_get_db():
        db = TestSession()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestSession
    app.dependency_overrides.clear()
    engine.dispose()


@pytest.fixture
def db(test_db):
    session = test_db()
    yield session
    session.close()


@pytest.fixture
def store(db):
    return RecordStore(db)


@pytest.fixture
def fresh_sessions():
    session_store.clear()
    yield session_store
    session_store.clear()


@pytest.fixture
def client(test_db, fresh_sessions):
    return TestClient(app)


def _org(store: RecordStore, name: str, email: str) -> Org:
    tenant = store.create_tenant(name, industry="Software")
    user = store.create_user(tenant.id, email, f"{name} Admin", role="admin")
    token = session_store.open_session(user.id, tenant.id)["token"]
    return Org(tenant_id=tenant.id, user_id=user.id, token=token)


@pytest.fixture
def acme(store, fresh_sessions):
    return _org(store, "Acme", "admin@acme.test")


@pytest.fixture
def globex(store, fresh_sessions):
    return _org(store, "Globex", "admin@globex.test")


@pytest.fixture
def make_job(client):
    def _make(org: Org, title="Backend Engineer", department="Engineering", type="full-time", status=None):
        r = client.post("/api/jobs", json={
            "title": title,
            "department": department,
            "type": type,
        }, headers=org.headers)
        assert r.status_code == 201
        job = r.json()
        if status == "active":
            r = client.patch(f"/api/jobs/{job['id']}/status", json={"status": "active"}, headers=org.headers)
            assert r.status_code == 200
            job["status"] = "active"
        return job
    return _make


@pytest.fixture
def make_candidate(client):
    def _make(org: Org, job_id=None, full_name="Ada Lovelace", email="ada@example.com"):
        r = client.post("/api/candidates", json={
            "fullName": full_name,
            "email": email,
            "jobId": job_id,
        }, headers=org.headers)
        assert r.status_code == 201
        return r.json()
    return _make
