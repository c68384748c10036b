from datetime import timedelta

from jose import jwt

from dialcrm.core.config import Settings, settings
from dialcrm.core.security import create_access_token


def test_login_success(client):
    response = client.post("/auth/login", json={"username": "admin", "password": "adminpassword"})
    assert response.status_code == 200
    data = response.json()
    assert "access_token" in data
    assert data["token_type"] == "bearer"


def test_login_failure(client):
    response = client.post("/auth/login", json={"username": "admin", "password": "wrong"})
    assert response.status_code == 401


def test_me_requires_token(client):
    response = client.get("/users/me")
    assert response.status_code == 401


def test_me_returns_current_user(client, rep_headers):
    response = client.get("/users/me", headers=rep_headers)
    assert response.status_code == 200
    assert response.json()["username"] == "rep"
    assert response.json()["role"] == "REP"


def test_rep_cannot_create_users(client, rep_headers):
    response = client.post("/users", json={"username": "newrep", "password": "newpassword"}, headers=rep_headers)
    assert response.status_code == 403


def test_token_of_another_type_is_rejected(client):
    token = jwt.encode({"sub": "rep", "type": "refresh"}, settings.secret_key, algorithm="HS256")
    response = client.get("/users/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401
    assert response.headers["www-authenticate"] == "Bearer"


def test_expired_token_is_rejected(client):
    token = create_access_token("rep", lifetime=timedelta(minutes=-1))
    response = client.get("/users/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


def test_cors_origins_accept_comma_and_json_lists():
    assert Settings(cors_origins="https://a.test/, https://b.test").cors_origins == ["https://a.test", "https://b.test"]
    assert Settings(cors_origins='["https://a.test"]').cors_origins == ["https://a.test"]
    assert Settings(cors_origins="").cors_origins == []
