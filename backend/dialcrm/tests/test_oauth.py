from datetime import timedelta

from dialcrm.core.clock import utcnow
from dialcrm.core.errors import ProviderError
from dialcrm.models import DialpadToken, OAuthState


def _authorize(client, headers):
    response = client.get("/dialpad/oauth/authorize", params={"code_challenge": "abc123"}, headers=headers)
    assert response.status_code == 200
    return response.json()["state"]


def test_authorize_issues_state(client, rep_headers, db, rep_user):
    response = client.get("/dialpad/oauth/authorize", headers=rep_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["state"] in data["url"]
    stored = db.query(OAuthState).filter(OAuthState.state == data["state"]).one()
    assert stored.user_id == rep_user.id
    assert stored.consumed_at is None


def test_exchange_stores_token(client, rep_headers, db, rep_user):
    state = _authorize(client, rep_headers)
    response = client.post(
        "/dialpad/oauth-exchange",
        json={"code": "auth-code", "state": state, "code_verifier": "verifier"},
        headers=rep_headers,
    )
    assert response.status_code == 200
    assert response.json() == {"success": True}
    token = db.query(DialpadToken).filter(DialpadToken.user_id == rep_user.id).one()
    assert token.access_token == "access-1"
    assert token.refresh_token == "refresh-1"

    status = client.get("/dialpad/oauth/status", headers=rep_headers).json()
    assert status["connected"] is True


def test_exchange_requires_authentication(client):
    response = client.post("/dialpad/oauth-exchange", json={"code": "auth-code", "state": "x"})
    assert response.status_code == 401


def test_exchange_rejects_unknown_state(client, rep_headers, db):
    response = client.post("/dialpad/oauth-exchange", json={"code": "auth-code", "state": "forged"}, headers=rep_headers)
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid OAuth state"
    assert db.query(DialpadToken).count() == 0


def test_exchange_state_is_single_use(client, rep_headers):
    state = _authorize(client, rep_headers)
    first = client.post("/dialpad/oauth-exchange", json={"code": "auth-code", "state": state}, headers=rep_headers)
    assert first.status_code == 200
    second = client.post("/dialpad/oauth-exchange", json={"code": "auth-code", "state": state}, headers=rep_headers)
    assert second.status_code == 400
    assert second.json()["error"] == "OAuth state already used"


def test_exchange_rejects_state_of_other_user(client, rep_headers, admin_headers):
    state = _authorize(client, admin_headers)
    response = client.post("/dialpad/oauth-exchange", json={"code": "auth-code", "state": state}, headers=rep_headers)
    assert response.status_code == 400


def test_exchange_rejects_expired_state(client, rep_headers, db):
    state = _authorize(client, rep_headers)
    stored = db.query(OAuthState).filter(OAuthState.state == state).one()
    stored.expires_at = utcnow() - timedelta(minutes=1)
    db.commit()
    response = client.post("/dialpad/oauth-exchange", json={"code": "auth-code", "state": state}, headers=rep_headers)
    assert response.status_code == 400
    assert response.json()["error"] == "OAuth state expired"


def test_exchange_provider_rejection(client, rep_headers, dialpad, db):
    dialpad.exchange_error = ProviderError(
        "Dialpad token request failed", provider_status=400, body='{"error": "invalid_grant"}'
    )
    state = _authorize(client, rep_headers)
    response = client.post("/dialpad/oauth-exchange", json={"code": "bad-code", "state": state}, headers=rep_headers)
    assert response.status_code == 400
    assert response.json() == {"error": "Token exchange failed", "details": '{"error": "invalid_grant"}'}
    assert db.query(DialpadToken).count() == 0


def test_status_when_not_connected(client, rep_headers):
    response = client.get("/dialpad/oauth/status", headers=rep_headers)
    assert response.json() == {"connected": False, "expires_at": None}
