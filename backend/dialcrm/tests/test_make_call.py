from datetime import timedelta

import pytest

from dialcrm.core.clock import as_utc, utcnow
from dialcrm.core.config import settings
from dialcrm.core.errors import ProviderError
from dialcrm.models import CallRecord, DialpadToken


def _connect(db, user, expires_in_minutes=30):
    db.add(
        DialpadToken(
            user_id=user.id,
            access_token="access-1",
            refresh_token="refresh-1",
            expires_at=utcnow() + timedelta(minutes=expires_in_minutes),
        )
    )
    db.commit()


@pytest.fixture()
def caller_id(monkeypatch):
    monkeypatch.setattr(settings, "dialpad_from_number", "+15550001111")


def test_make_call_with_valid_token(client, rep_headers, dialpad, db, rep_user, caller_id):
    _connect(db, rep_user)
    response = client.post(
        "/dialpad/make-call",
        json={"to_number": "+15557654321", "contact_id": "contact-9", "deal_id": "deal-1"},
        headers=rep_headers,
    )
    assert response.status_code == 200
    assert response.json()["success"] is True
    assert dialpad.created == [
        {"access_token": "access-1", "to": "+15557654321", "from": "+15550001111", "external_id": "deal-1"}
    ]
    assert dialpad.refreshed_with == []
    record = db.query(CallRecord).filter(CallRecord.dialpad_call_id == "dp-outbound-1").one()
    assert record.related_deal_id == "deal-1"
    assert record.rep_id == rep_user.id


def test_make_call_refreshes_expired_token(client, rep_headers, dialpad, db, rep_user, caller_id):
    _connect(db, rep_user, expires_in_minutes=-5)
    response = client.post("/dialpad/make-call", json={"to_number": "+15557654321"}, headers=rep_headers)
    assert response.status_code == 200
    assert dialpad.refreshed_with == ["refresh-1"]
    assert dialpad.created[0]["access_token"] == "access-2"
    db.expire_all()
    token = db.query(DialpadToken).filter(DialpadToken.user_id == rep_user.id).one()
    assert token.access_token == "access-2"
    assert token.refresh_token == "refresh-1"
    assert as_utc(token.expires_at) > utcnow()


def test_make_call_refresh_failure_does_not_dial(client, rep_headers, dialpad, db, rep_user, caller_id):
    _connect(db, rep_user, expires_in_minutes=-5)
    dialpad.refresh_error = ProviderError("Dialpad token request failed", provider_status=400, body="revoked")
    response = client.post("/dialpad/make-call", json={"to_number": "+15557654321"}, headers=rep_headers)
    assert response.status_code == 401
    assert response.json() == {"error": "Failed to refresh token", "details": "revoked"}
    assert dialpad.created == []


def test_make_call_not_connected(client, rep_headers, dialpad, caller_id):
    response = client.post("/dialpad/make-call", json={"to_number": "+15557654321"}, headers=rep_headers)
    assert response.status_code == 401
    assert response.json()["error"] == "Dialpad not connected for this user"
    assert dialpad.created == []


def test_make_call_requires_caller_id(client, rep_headers, dialpad, db, rep_user, monkeypatch):
    monkeypatch.setattr(settings, "dialpad_from_number", None)
    _connect(db, rep_user)
    response = client.post("/dialpad/make-call", json={"to_number": "+15557654321"}, headers=rep_headers)
    assert response.status_code == 400
    assert response.json()["error"] == "Missing outbound caller ID"
    assert dialpad.created == []


def test_make_call_provider_error(client, rep_headers, dialpad, db, rep_user, caller_id, monkeypatch):
    _connect(db, rep_user)

    def reject(*args, **kwargs):
        raise ProviderError("Dialpad API error: 403", provider_status=403, body="caller id not verified")

    monkeypatch.setattr(dialpad, "create_call", reject)
    response = client.post("/dialpad/make-call", json={"to_number": "+15557654321"}, headers=rep_headers)
    assert response.status_code == 502
    assert response.json() == {
        "error": "Dialpad API error: 403",
        "details": "caller id not verified",
        "status": 403,
    }


def test_make_call_validates_payload(client, rep_headers):
    response = client.post("/dialpad/make-call", json={}, headers=rep_headers)
    assert response.status_code == 422
