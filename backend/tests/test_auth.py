from datetime import datetime, timedelta, timezone

from avatar_api import db
from avatar_api.models.auth_session import AuthSession


def test_login_binds_session_to_client(client, user):
    response = client.post("/login", json={"email": "a@x.com", "password": "p"})

    assert response.status_code == 200
    body = response.get_json()
    assert body["user"]["id"] == 7
    assert "password_hash" not in body["user"]

    session = db.session.get(AuthSession, body["token"])
    assert session.client_id == 7
    assert session.group_name == "Acme"


def test_login_rejects_wrong_password(client, user):
    response = client.post("/login", json={"email": "a@x.com", "password": "nope"})
    assert response.status_code == 401
    assert response.get_json()["kind"] == "unauthorized"


def test_login_rejects_unknown_and_inactive_clients(client, make_client):
    make_client("off@x.com", password="p", is_active=False)

    assert client.post("/login", json={"email": "off@x.com", "password": "p"}).status_code == 401
    assert client.post("/login", json={"email": "ghost@x.com", "password": "p"}).status_code == 401
    assert client.post("/login", json={}).status_code == 401


def test_password_is_stored_hashed(user):
    assert user.password_hash != "p"
    assert user.check_password("p")


def test_me_requires_a_session(client, user_headers):
    assert client.get("/me").status_code == 401
    assert client.get("/me", headers={"Authorization": "Bearer bogus"}).status_code == 401

    response = client.get("/me", headers=user_headers)
    assert response.status_code == 200
    assert response.get_json()["user"]["email"] == "a@x.com"


def test_logout_invalidates_the_session(client, user_headers):
    assert client.post("/logout", headers=user_headers).status_code == 200
    assert client.get("/me", headers=user_headers).status_code == 401

    # Idempotent
    assert client.post("/logout", headers=user_headers).status_code == 200
    assert client.post("/logout").status_code == 200


def test_expired_session_is_rejected_and_removed(client, user_headers):
    token = user_headers["Authorization"].split(" ")[1]
    session = db.session.get(AuthSession, token)
    session.expires_at = datetime.now(timezone.utc) - timedelta(minutes=1)
    db.session.commit()

    assert client.get("/me", headers=user_headers).status_code == 401
    assert db.session.get(AuthSession, token) is None


def test_cookie_session(app, user):
    browser = app.test_client()
    assert browser.post("/login", json={"email": "a@x.com", "password": "p"}).status_code == 200
    assert browser.get("/me").status_code == 200

    browser.post("/logout")
    assert browser.get("/me").status_code == 401


def test_routes_require_authentication(client, user):
    for method, url in [
        ("get", "/asst_list/7"),
        ("post", "/create_assistant/7"),
        ("get", "/admin/users"),
        ("get", "/group/assistants"),
        ("get", "/assistant-activity"),
        ("get", "/download/notes.txt"),
    ]:
        assert getattr(client, method)(url).status_code == 401, url


def test_health(client):
    assert client.get("/health").get_json() == {"status": "ok"}
