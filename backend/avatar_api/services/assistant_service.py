from avatar_api import db
from avatar_api.models.assistant import Assistant, CONFIG_FIELDS, REMOTE_FIELDS
from avatar_api.models.template import Template
from avatar_api.models.assistant_function import AssistantFunction
from avatar_api.services.tenant_service import (
    client_for_client,
    client_for_assistant,
    call_remote,
    tool_to_dict
)
from avatar_api.utils.errors import ValidationError, NotFoundError, ConflictError, PartialFailureError
from flask import current_app
from openai import OpenAIError
from sqlalchemy.exc import SQLAlchemyError
import json
import re
import logging

logger = logging.getLogger(__name__)

FUNCTION_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9_-]{1,64}$")
NUMERIC_RANGES = {"temperature": (0.0, 2.0), "top_p": (0.0, 1.0)}


def parse_config_fields(data):
    """
    Pick the configuration fields present (and non-null) in a request body
    and validate them.
    """
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")

    fields = {key: data[key] for key in CONFIG_FIELDS if data.get(key) is not None}

    for key, (low, high) in NUMERIC_RANGES.items():
        if key in fields:
            try:
                value = float(fields[key])
            except (TypeError, ValueError):
                raise ValidationError(f"{key} must be a number")
            if not low <= value <= high:
                raise ValidationError(f"{key} must be between {low} and {high}")
            fields[key] = value

    if "name" in fields and not str(fields["name"]).strip():
        raise ValidationError("name cannot be empty")

    return fields


def default_fields():
    return {
        "model": current_app.config["OPENAI_MODEL"],
        "temperature": 1.0,
        "top_p": 1.0,
        "instructions": ""
    }


def resolve_creation_fields(client, data, template_id=None):
    """
    Caller fields win over template fields, which win over the defaults.
    """
    fields = parse_config_fields(data)
    template_fields = {}

    if template_id is not None:
        template = db.session.get(Template, template_id)
        # Templates are scoped to a group; ungrouped templates are shared
        if not template or (template.group_id is not None and template.group_id != client.group_id):
            raise NotFoundError("Template not found")
        template_fields = {
            key: getattr(template, key) for key in CONFIG_FIELDS
            if getattr(template, key) is not None
        }

    merged = {**default_fields(), **template_fields, **fields}
    if not merged.get("name"):
        raise ValidationError("name is required")
    return merged


def create_assistant(client, data, template_id=None):
    fields = resolve_creation_fields(client, data, template_id)
    api = client_for_client(client)

    remote = call_remote(
        "create assistant",
        api.beta.assistants.create,
        tools=[],
        **{key: fields[key] for key in REMOTE_FIELDS}
    )
    logger.info(f"[Client: {client.id}] Created remote assistant {remote.id}")

    assistant = Assistant(asst_id=remote.id, client_id=client.id, template_id=template_id, **fields)
    try:
        db.session.add(assistant)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"[Client: {client.id}] Saving assistant {remote.id} failed, removing remote copy: {e}")
        try:
            api.beta.assistants.delete(remote.id)
        except OpenAIError as undo_error:
            raise PartialFailureError(
                "Assistant was created remotely but could not be saved",
                details={"asst_id": remote.id}
            ) from undo_error
        raise

    return assistant


def update_assistant(assistant, data):
    """
    Push the remote subset first, then write every configuration field
    locally. Returns the re-read row.
    """
    fields = parse_config_fields(data)
    if not fields:
        raise ValidationError("No fields to update")

    asst_id = assistant.asst_id
    api = client_for_assistant(assistant)
    remote_fields = {key: fields.get(key, getattr(assistant, key)) for key in REMOTE_FIELDS}
    call_remote("update assistant", api.beta.assistants.update, asst_id, **remote_fields)

    updated = Assistant.query.filter_by(asst_id=asst_id, is_deleted=False).update(
        fields, synchronize_session=False
    )
    db.session.commit()

    if updated == 0:
        logger.error(
            f"Inconsistent state: remote assistant {asst_id} was updated "
            f"but its local row no longer exists"
        )
        raise NotFoundError("Assistant not found", details={"remote_updated": True})

    db.session.expire_all()
    return Assistant.query.filter_by(asst_id=asst_id).first()


def soft_delete_assistant(assistant):
    # Remote assistant and history are kept
    if not assistant.is_deleted:
        assistant.is_deleted = True
        db.session.commit()
    return assistant


def _remote_tools(api, asst_id):
    remote = call_remote("retrieve assistant", api.beta.assistants.retrieve, asst_id)
    return [tool_to_dict(tool) for tool in (remote.tools or [])]


def _is_function(tool, name):
    return tool.get("type") == "function" and tool.get("function", {}).get("name") == name


def toggle_file_search(assistant, enabled):
    api = client_for_assistant(assistant)
    tools = [t for t in _remote_tools(api, assistant.asst_id) if t.get("type") != "file_search"]

    params = {}
    if enabled:
        tools.append({"type": "file_search"})
        if assistant.vector_store_id:
            params["tool_resources"] = {"file_search": {"vector_store_ids": [assistant.vector_store_id]}}

    call_remote("update assistant tools", api.beta.assistants.update, assistant.asst_id, tools=tools, **params)

    assistant.file_search = bool(enabled)
    db.session.commit()
    return assistant


def list_functions(assistant):
    return AssistantFunction.query.filter_by(assistant_id=assistant.id).order_by(AssistantFunction.id).all()


def add_function(assistant, data):
    name = (data.get("name") or "").strip()
    if not FUNCTION_NAME_PATTERN.match(name):
        raise ValidationError("Function name must be 1-64 letters, digits, '_' or '-'")
    description = data.get("description") or ""
    parameters = data.get("parameters") or {"type": "object", "properties": {}}
    if not isinstance(parameters, dict):
        raise ValidationError("parameters must be a JSON schema object")

    api = client_for_assistant(assistant)
    original_tools = _remote_tools(api, assistant.asst_id)
    exists_locally = AssistantFunction.query.filter_by(assistant_id=assistant.id, name=name).first()
    if exists_locally or any(_is_function(t, name) for t in original_tools):
        raise ConflictError(f"Function '{name}' already exists")

    tools = original_tools + [{
        "type": "function",
        "function": {"name": name, "description": description, "parameters": parameters}
    }]
    call_remote("add function", api.beta.assistants.update, assistant.asst_id, tools=tools)

    function = AssistantFunction(
        assistant_id=assistant.id,
        name=name,
        description=description,
        parameters=json.dumps(parameters)
    )
    try:
        db.session.add(function)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Saving function {name} for {assistant.asst_id} failed, restoring remote tools: {e}")
        try:
            api.beta.assistants.update(assistant.asst_id, tools=original_tools)
        except OpenAIError as undo_error:
            raise PartialFailureError(
                "Function was added remotely but could not be saved",
                details={"asst_id": assistant.asst_id, "function": name}
            ) from undo_error
        raise

    return function


def delete_function(assistant, name):
    api = client_for_assistant(assistant)
    tools = _remote_tools(api, assistant.asst_id)
    remaining = [t for t in tools if not _is_function(t, name)]
    function = AssistantFunction.query.filter_by(assistant_id=assistant.id, name=name).first()

    if len(remaining) == len(tools) and not function:
        raise NotFoundError(f"Function '{name}' not found")

    if len(remaining) != len(tools):
        call_remote("delete function", api.beta.assistants.update, assistant.asst_id, tools=remaining)

    if function:
        try:
            db.session.delete(function)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            raise PartialFailureError(
                "Function was removed remotely but its local record remains",
                details={"asst_id": assistant.asst_id, "function": name}
            ) from e
