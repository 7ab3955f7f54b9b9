import openai
import pytest

from avatar_api.config import group_env_label, _group_keys_from_env
from avatar_api.services.tenant_service import TenantRegistry, call_remote
from avatar_api.utils.errors import ConfigError, UpstreamError


@pytest.mark.parametrize("name, label", [
    ("Acme", "ACME"),
    ("Acme Corp", "ACME_CORP"),
    ("north-east.eu", "NORTH_EAST_EU"),
])
def test_group_env_label(name, label):
    assert group_env_label(name) == label


def test_group_keys_from_env():
    environ = {"OPENAI_API_KEY": "sk-default", "OPENAI_API_KEY_ACME": "sk-acme",
               "OPENAI_API_KEY_EMPTY": "", "PATH": "/usr/bin"}
    assert _group_keys_from_env(environ) == {"ACME": "sk-acme"}


def test_registry_resolves_group_and_default_credentials():
    created = []
    registry = TenantRegistry(
        default_key="sk-default",
        group_keys={"ACME_CORP": "sk-acme"},
        factory=lambda key, timeout, retries: created.append((key, timeout, retries)) or key,
        timeout=30.0,
        max_retries=0
    )

    assert registry.client_for_group("Acme Corp") == "sk-acme"
    assert registry.client_for_group(None) == "sk-default"
    assert created == [("sk-acme", 30.0, 0), ("sk-default", 30.0, 0)]

    with pytest.raises(ConfigError):
        registry.resolve_credential("Initech")


def test_registry_without_default_key():
    with pytest.raises(ConfigError):
        TenantRegistry(default_key=None, group_keys={}).resolve_credential(None)


def test_call_remote_wraps_sdk_errors():
    def fail():
        raise openai.OpenAIError("boom")

    with pytest.raises(UpstreamError) as excinfo:
        call_remote("do things", fail)
    assert "Failed to do things: boom" in str(excinfo.value.message)
    assert call_remote("add", lambda a, b: a + b, 1, b=2) == 3


def test_calls_use_the_owners_group_key(client, user_headers, create_assistant, remote):
    asst_id = create_assistant()["asst_id"]
    client.put(f"/update_assistant/{asst_id}", json={"name": "Renamed"}, headers=user_headers)

    assert remote.api_keys == ["sk-acme", "sk-acme"]


def test_admin_acting_on_a_member_uses_the_members_group_key(client, user, admin_headers, create_assistant, remote):
    # The admin has no group; the assistant owner decides the tenant
    create_assistant(headers=admin_headers, client_id=user.id)
    assert remote.api_keys == ["sk-acme"]


def test_ungrouped_client_uses_the_default_key(client, make_client, login, create_assistant, remote):
    solo = make_client("solo@x.com")
    create_assistant(headers=login("solo@x.com"), client_id=solo.id)
    assert remote.api_keys == ["sk-default"]


def test_group_without_a_key_is_a_config_error(client, make_client, login, remote):
    member = make_client("i@x.com", group="Initech")

    response = client.post(f"/create_assistant/{member.id}", json={"name": "Bot"}, headers=login("i@x.com"))

    assert response.status_code == 500
    assert response.get_json()["kind"] == "config"
    assert remote.calls == []
