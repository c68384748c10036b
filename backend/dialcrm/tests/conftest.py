import os

os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")
os.environ.setdefault("REDIS_URL", "redis://localhost:6399/0")
os.environ["AUTO_MIGRATE"] = "false"
os.environ.setdefault("DIALPAD_CLIENT_ID", "client-id")
os.environ.setdefault("DIALPAD_CLIENT_SECRET", "client-secret")
os.environ.setdefault("DIALPAD_REDIRECT_URL", "http://localhost:5173/dialpad/callback")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from dialcrm.api import webhooks as webhooks_api
from dialcrm.core import database, deps
from dialcrm.core.database import Base
from dialcrm.core.security import create_access_token, hash_password
from dialcrm.main import app
from dialcrm.models import User

SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"

engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


class FakeDialpadClient:
    def __init__(self):
        self.calls = []
        self.created = []
        self.sms = []
        self.exchange_payload = {"access_token": "access-1", "refresh_token": "refresh-1", "expires_in": 3600}
        self.refresh_payload = {"access_token": "access-2", "expires_in": 3600}
        self.exchange_error = None
        self.refresh_error = None
        self.list_error = None
        self.refreshed_with = []

    def authorize_url(self, state, code_challenge=None):
        return f"https://dialpad.test/oauth2/authorize?state={state}"

    def exchange_code(self, code, code_verifier=None):
        if self.exchange_error:
            raise self.exchange_error
        return dict(self.exchange_payload)

    def refresh_token(self, refresh_token):
        self.refreshed_with.append(refresh_token)
        if self.refresh_error:
            raise self.refresh_error
        return dict(self.refresh_payload)

    def create_call(self, access_token, to_number, from_number, external_id=None):
        self.created.append(
            {"access_token": access_token, "to": to_number, "from": from_number, "external_id": external_id}
        )
        return {"call_id": "dp-outbound-1", "state": "calling"}

    def list_calls(self, start_time=None, end_time=None, limit=100):
        if self.list_error:
            raise self.list_error
        return list(self.calls)

    def send_sms(self, to_number, text):
        self.sms.append({"to": to_number, "text": text})
        return {"id": 77, "to": to_number, "from_number": "+15550001111", "text": text}


class FakeSummarizer:
    def __init__(self, summary="Customer asked for a pricing follow-up next week.", error=None):
        self.summary = summary
        self.error = error
        self.transcripts = []

    def summarize(self, transcript):
        self.transcripts.append(transcript)
        if self.error:
            raise self.error
        return self.summary


class FakeEmailRelay:
    def __init__(self, enabled=True, error=None):
        self.enabled = enabled
        self.error = error
        self.sent = []

    def send(self, to, subject, html, sender=None):
        if self.error:
            raise self.error
        self.sent.append({"to": to, "subject": subject, "html": html})
        return {"id": "email-1"}


@pytest.fixture(scope="session", autouse=True)
def setup_database():
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    admin = User(username="admin", hashed_password=hash_password("adminpassword"), role="ADMIN", email="admin@test")
    rep = User(username="rep", hashed_password=hash_password("reppassword"), role="REP", full_name="Rita Rep")
    db.add_all([admin, rep])
    db.commit()
    db.close()
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def clean_tables():
    yield
    with engine.begin() as connection:
        for table in reversed(Base.metadata.sorted_tables):
            if table.name != "users":
                connection.execute(table.delete())


@pytest.fixture()
def db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def dialpad():
    return FakeDialpadClient()


@pytest.fixture()
def summarizer():
    return FakeSummarizer()


@pytest.fixture()
def relay():
    return FakeEmailRelay()


@pytest.fixture()
def dispatched(monkeypatch):
    task_ids = []
    monkeypatch.setattr(webhooks_api, "dispatch_enrichment", lambda ids: task_ids.extend(ids))
    return task_ids


@pytest.fixture()
def client(dialpad, summarizer, relay, dispatched):
    app.dependency_overrides[database.get_db] = override_get_db
    app.dependency_overrides[deps.get_dialpad_client] = lambda: dialpad
    app.dependency_overrides[deps.get_summarizer] = lambda: summarizer
    app.dependency_overrides[deps.get_email_relay] = lambda: relay
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture()
def rep_user(db):
    return db.query(User).filter(User.username == "rep").one()


@pytest.fixture()
def rep_headers():
    return {"Authorization": f"Bearer {create_access_token('rep')}"}


@pytest.fixture()
def admin_headers():
    return {"Authorization": f"Bearer {create_access_token('admin')}"}


@pytest.fixture()
def session_factory():
    return TestingSessionLocal
