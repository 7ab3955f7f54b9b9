"""
Maps a client group to the OpenAI credential used on its behalf.

The group is always derived server-side (Assistant -> Client -> Group), never
taken from a request field.
"""
from flask import current_app
from openai import OpenAI, OpenAIError
from avatar_api.config import group_env_label
from avatar_api.utils.errors import ConfigError, UpstreamError
import logging

logger = logging.getLogger(__name__)

DEFAULT_TENANT = "default"


def default_openai_factory(api_key, timeout, max_retries):
    return OpenAI(api_key=api_key, timeout=timeout, max_retries=max_retries)


class TenantRegistry:
    def __init__(self, default_key, group_keys, factory=None, timeout=60.0, max_retries=0):
        self.default_key = default_key
        self.group_keys = dict(group_keys or {})
        self.factory = factory or default_openai_factory
        self.timeout = timeout
        self.max_retries = max_retries

    @classmethod
    def from_config(cls, config, factory=None):
        return cls(
            default_key=config.get("OPENAI_API_KEY"),
            group_keys=config.get("OPENAI_GROUP_API_KEYS", {}),
            factory=factory,
            timeout=config.get("OPENAI_TIMEOUT", 60.0),
            max_retries=config.get("OPENAI_MAX_RETRIES", 0)
        )

    def resolve_credential(self, group_name):
        if group_name is None:
            if not self.default_key:
                raise ConfigError(f"No API key configured for tenant '{DEFAULT_TENANT}'")
            return self.default_key

        key = self.group_keys.get(group_env_label(group_name))
        if not key:
            logger.error(f"Missing OPENAI_API_KEY_{group_env_label(group_name)} for group {group_name}")
            raise ConfigError(f"No API key configured for group '{group_name}'")
        return key

    def client_for_group(self, group_name):
        api_key = self.resolve_credential(group_name)
        return self.factory(api_key, self.timeout, self.max_retries)


def get_registry():
    return current_app.extensions["tenants"]


def client_for_client(client):
    return get_registry().client_for_group(client.group_name)


def client_for_assistant(assistant):
    return client_for_client(assistant.client)


def call_remote(action, fn, *args, **kwargs):
    """Run one OpenAI call, turning SDK failures into UpstreamError."""
    try:
        return fn(*args, **kwargs)
    except OpenAIError as e:
        logger.error(f"OpenAI call failed ({action}): {e}")
        raise UpstreamError(f"Failed to {action}: {e}") from e


def tool_to_dict(tool):
    if isinstance(tool, dict):
        return tool
    return tool.model_dump(exclude_none=True)
