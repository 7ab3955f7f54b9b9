from flask import Blueprint, request, jsonify
from avatar_api.models.assistant import Assistant
from avatar_api.services import assistant_service
from avatar_api.utils.access import get_client_for, get_assistant_for
from avatar_api.utils.decorators import authenticate
from avatar_api.utils.errors import ValidationError
from sqlalchemy.exc import SQLAlchemyError
import logging

logger = logging.getLogger(__name__)

assistant_bp = Blueprint('assistants', __name__, url_prefix='')


def _json_body():
    data = request.get_json(silent=True)
    if data is None:
        raise ValidationError("Request body must be JSON")
    return data


@assistant_bp.route('/create_assistant/<int:client_id>', methods=['POST'])
@authenticate
def create_assistant(user, client_id):
    logger.info(f"[Client: {user['id']}] Received request to create assistant for client {client_id}")
    data = _json_body()
    client = get_client_for(user, client_id)

    template_id = data.get("template_id")
    if template_id is not None:
        try:
            template_id = int(template_id)
        except (TypeError, ValueError):
            raise ValidationError("template_id must be an integer")

    assistant = assistant_service.create_assistant(client, data, template_id)
    logger.info(f"[Client: {user['id']}] Created assistant {assistant.asst_id}")
    return jsonify({"message": "Assistant created", "assistant": assistant.to_dict()}), 201


@assistant_bp.route('/update_assistant/<asst_id>', methods=['PUT'])
@authenticate
def update_assistant(user, asst_id):
    logger.info(f"[Client: {user['id']}] Received request to update assistant {asst_id}")
    data = _json_body()
    assistant = get_assistant_for(user, asst_id)
    assistant = assistant_service.update_assistant(assistant, data)
    return jsonify({"message": "Assistant updated", "assistant": assistant.to_dict()}), 200


@assistant_bp.route('/softdelete_asst/<asst_id>', methods=['PUT'])
@authenticate
def soft_delete_assistant(user, asst_id):
    logger.info(f"[Client: {user['id']}] Received request to delete assistant {asst_id}")
    assistant = get_assistant_for(user, asst_id, include_deleted=True)
    assistant_service.soft_delete_assistant(assistant)
    return jsonify({"message": "Assistant deleted successfully"}), 200


@assistant_bp.route('/asst_list/<int:client_id>', methods=['GET'])
@authenticate
def list_assistants(user, client_id):
    client = get_client_for(user, client_id)
    try:
        assistants = Assistant.query.filter_by(client_id=client.id, is_deleted=False)\
            .order_by(Assistant.created_at.desc(), Assistant.id.desc()).all()
        return jsonify([a.to_dict() for a in assistants]), 200
    except SQLAlchemyError as e:
        logger.error(f"[Client: {user['id']}] Assistant Retrieval Error: {e}")
        raise


@assistant_bp.route('/avatars_list/<int:client_id>', methods=['GET'])
@authenticate
def list_avatars(user, client_id):
    client = get_client_for(user, client_id)
    try:
        assistants = Assistant.query.filter_by(client_id=client.id, is_deleted=False)\
            .order_by(Assistant.id).all()
        return jsonify([a.to_avatar_dict() for a in assistants]), 200
    except SQLAlchemyError as e:
        logger.error(f"[Client: {user['id']}] Avatar Retrieval Error: {e}")
        raise


@assistant_bp.route('/toggle_file_search/<asst_id>', methods=['PUT'])
@authenticate
def toggle_file_search(user, asst_id):
    data = _json_body()
    enabled = data.get("enabled")
    if not isinstance(enabled, bool):
        raise ValidationError("enabled must be true or false")

    logger.info(f"[Client: {user['id']}] Setting file search to {enabled} on {asst_id}")
    assistant = get_assistant_for(user, asst_id)
    assistant = assistant_service.toggle_file_search(assistant, enabled)
    return jsonify({"message": "File search updated", "assistant": assistant.to_dict()}), 200


@assistant_bp.route('/add_function/<asst_id>', methods=['POST'])
@authenticate
def add_function(user, asst_id):
    logger.info(f"[Client: {user['id']}] Received request to add function to {asst_id}")
    data = _json_body()
    assistant = get_assistant_for(user, asst_id)
    function = assistant_service.add_function(assistant, data)
    return jsonify({"message": "Function added", "function": function.to_dict()}), 201


@assistant_bp.route('/functions/<asst_id>', methods=['GET'])
@authenticate
def list_functions(user, asst_id):
    assistant = get_assistant_for(user, asst_id)
    functions = assistant_service.list_functions(assistant)
    return jsonify([f.to_dict() for f in functions]), 200


@assistant_bp.route('/functions/<asst_id>/<function_name>', methods=['DELETE'])
@authenticate
def delete_function(user, asst_id, function_name):
    logger.info(f"[Client: {user['id']}] Received request to delete function {function_name} from {asst_id}")
    assistant = get_assistant_for(user, asst_id)
    assistant_service.delete_function(assistant, function_name)
    return jsonify({"message": "Function deleted"}), 200
