import pytest

from avatar_api.models.assistant import Assistant
from avatar_api.models.auth_session import AuthSession
from avatar_api.models.client import Client


@pytest.mark.parametrize("method, url", [
    ("get", "/admin/templates"),
    ("post", "/admin/templates"),
    ("get", "/admin/groups"),
    ("post", "/admin/groups"),
    ("get", "/admin/users"),
    ("delete", "/admin/users/7"),
    ("get", "/admin/assistants"),
    ("get", "/dashboard/group-overview"),
])
def test_admin_routes_reject_other_roles(client, user_headers, method, url):
    response = getattr(client, method)(url, headers=user_headers)
    assert response.status_code == 403
    assert response.get_json()["kind"] == "forbidden"


def test_template_crud(client, admin_headers):
    group = client.post("/admin/groups", json={"name": "Acme"}, headers=admin_headers).get_json()

    response = client.post(
        "/admin/templates",
        json={"name": "Receptionist", "instructions": "Greet", "temperature": 0.4, "group_id": group["id"]},
        headers=admin_headers
    )
    assert response.status_code == 201
    template = response.get_json()
    assert template["client_group"] == "Acme"

    updated = client.put(f"/admin/templates/{template['id']}", json={"voice": "nova"}, headers=admin_headers)
    assert updated.get_json()["voice"] == "nova"
    assert updated.get_json()["instructions"] == "Greet"

    assert client.get(f"/admin/templates/{template['id']}", headers=admin_headers).status_code == 200
    assert client.delete(f"/admin/templates/{template['id']}", headers=admin_headers).status_code == 200
    assert client.get(f"/admin/templates/{template['id']}", headers=admin_headers).status_code == 404
    assert client.get("/admin/templates", headers=admin_headers).get_json() == []


def test_template_validation(client, admin_headers):
    assert client.post("/admin/templates", json={"instructions": "x"}, headers=admin_headers).status_code == 400
    assert client.post("/admin/templates", json={"name": "T", "top_p": 2},
                       headers=admin_headers).status_code == 400
    assert client.post("/admin/templates", json={"name": "T", "group_id": 999},
                       headers=admin_headers).status_code == 404


def test_deleting_template_keeps_assistants(client, user, admin_headers, create_assistant):
    template = client.post("/admin/templates", json={"name": "Base", "voice": "alloy"},
                           headers=admin_headers).get_json()
    asst_id = create_assistant(template_id=template["id"])["asst_id"]

    client.delete(f"/admin/templates/{template['id']}", headers=admin_headers)

    row = Assistant.query.filter_by(asst_id=asst_id).one()
    assert row.template_id is None
    assert row.voice == "alloy"


def test_group_crud_and_conflicts(client, admin_headers, make_client):
    created = client.post("/admin/groups", json={"name": "Acme", "description": "First"}, headers=admin_headers)
    assert created.status_code == 201
    group_id = created.get_json()["id"]

    assert client.post("/admin/groups", json={"name": "Acme"}, headers=admin_headers).status_code == 409
    assert client.post("/admin/groups", json={"name": " "}, headers=admin_headers).status_code == 400

    renamed = client.put(f"/admin/groups/{group_id}", json={"name": "Acme Corp"}, headers=admin_headers)
    assert renamed.get_json()["name"] == "Acme Corp"

    make_client("m@x.com", group="Acme Corp")
    assert client.delete(f"/admin/groups/{group_id}", headers=admin_headers).status_code == 409

    other = client.post("/admin/groups", json={"name": "Empty"}, headers=admin_headers).get_json()
    assert client.delete(f"/admin/groups/{other['id']}", headers=admin_headers).status_code == 200
    names = [g["name"] for g in client.get("/admin/groups", headers=admin_headers).get_json()]
    assert names == ["Acme Corp"]


def test_user_creation_hashes_password_and_normalizes_email(client, admin_headers):
    group = client.post("/admin/groups", json={"name": "Acme"}, headers=admin_headers).get_json()

    response = client.post(
        "/admin/users",
        json={"email": " New@X.com ", "password": "pw", "name": "New", "role": "group_admin",
              "group_id": group["id"]},
        headers=admin_headers
    )

    assert response.status_code == 201
    body = response.get_json()
    assert body["email"] == "new@x.com"
    assert body["client_group"] == "Acme"
    assert "password_hash" not in body
    assert Client.query.filter_by(email="new@x.com").one().password_hash != "pw"
    assert client.post("/login", json={"email": "new@x.com", "password": "pw"}).status_code == 200


def test_user_creation_rejects_bad_input(client, admin, admin_headers):
    assert client.post("/admin/users", json={"email": "x@x.com"}, headers=admin_headers).status_code == 400
    assert client.post("/admin/users", json={"email": "x@x.com", "password": "p", "name": "X", "role": "owner"},
                       headers=admin_headers).status_code == 400
    assert client.post("/admin/users", json={"email": "root@x.com", "password": "p", "name": "X"},
                       headers=admin_headers).status_code == 409


def test_updating_a_user_ends_their_sessions(client, user, user_headers, admin_headers):
    assert client.get("/me", headers=user_headers).status_code == 200

    response = client.put(f"/admin/users/{user.id}", json={"role": "group_admin"}, headers=admin_headers)

    assert response.status_code == 200
    assert response.get_json()["role"] == "group_admin"
    assert AuthSession.query.filter_by(client_id=user.id).count() == 0
    assert client.get("/me", headers=user_headers).status_code == 401


def test_deactivated_user_cannot_log_in(client, user, admin_headers):
    client.put(f"/admin/users/{user.id}", json={"is_active": False}, headers=admin_headers)
    assert client.post("/login", json={"email": "a@x.com", "password": "p"}).status_code == 401


def test_user_with_assistants_cannot_be_deleted(client, user, admin_headers, create_assistant, make_client):
    create_assistant()
    assert client.delete(f"/admin/users/{user.id}", headers=admin_headers).status_code == 409

    spare = make_client("spare@x.com")
    assert client.delete(f"/admin/users/{spare.id}", headers=admin_headers).status_code == 200
    assert client.delete(f"/admin/users/{spare.id}", headers=admin_headers).status_code == 404


def test_admin_lists_every_live_assistant(client, admin_headers, create_assistant, make_client, login):
    create_assistant(name="One")
    other = make_client("b@x.com", group="Globex")
    create_assistant(name="Two", headers=login("b@x.com"), client_id=other.id)

    names = [a["name"] for a in client.get("/admin/assistants", headers=admin_headers).get_json()]
    assert names == ["One", "Two"]
