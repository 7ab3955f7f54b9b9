from flask import Blueprint, request, jsonify
from avatar_api import db
from avatar_api.models.assistant import Assistant, CONFIG_FIELDS
from avatar_api.models.client import Client, ROLES
from avatar_api.models.group import Group
from avatar_api.models.template import Template
from avatar_api.services.assistant_service import parse_config_fields
from avatar_api.services.auth_service import purge_sessions_for_client
from avatar_api.utils.decorators import authenticate, require_role
from avatar_api.utils.errors import ValidationError, NotFoundError, ConflictError
from sqlalchemy.exc import IntegrityError
import logging

logger = logging.getLogger(__name__)

admin_bp = Blueprint('admin', __name__, url_prefix='/admin')


def _json_body():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def _get_or_404(model, object_id, label):
    obj = db.session.get(model, object_id)
    if not obj:
        raise NotFoundError(f"{label} not found")
    return obj


def _group_id_from(data):
    group_id = data.get("group_id")
    if group_id is None:
        return None
    _get_or_404(Group, group_id, "Group")
    return group_id


def _commit_or_conflict(message):
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError(message)


################################
## Templates
################################

@admin_bp.route('/templates', methods=['GET'])
@authenticate
@require_role('admin')
def list_templates(user):
    templates = Template.query.order_by(Template.id).all()
    return jsonify([t.to_dict() for t in templates]), 200


@admin_bp.route('/templates/<int:template_id>', methods=['GET'])
@authenticate
@require_role('admin')
def get_template(user, template_id):
    return jsonify(_get_or_404(Template, template_id, "Template").to_dict()), 200


@admin_bp.route('/templates', methods=['POST'])
@authenticate
@require_role('admin')
def create_template(user):
    data = _json_body()
    fields = parse_config_fields(data)
    if not fields.get("name"):
        raise ValidationError("name is required")

    template = Template(group_id=_group_id_from(data), **fields)
    db.session.add(template)
    db.session.commit()
    logger.info(f"[Client: {user['id']}] Created template {template.id}")
    return jsonify(template.to_dict()), 201


@admin_bp.route('/templates/<int:template_id>', methods=['PUT'])
@authenticate
@require_role('admin')
def update_template(user, template_id):
    template = _get_or_404(Template, template_id, "Template")
    data = _json_body()
    fields = parse_config_fields(data)
    for key in CONFIG_FIELDS:
        if key in fields:
            setattr(template, key, fields[key])
    if "group_id" in data:
        template.group_id = _group_id_from(data)

    db.session.commit()
    return jsonify(template.to_dict()), 200


@admin_bp.route('/templates/<int:template_id>', methods=['DELETE'])
@authenticate
@require_role('admin')
def delete_template(user, template_id):
    template = _get_or_404(Template, template_id, "Template")
    # Assistants keep their copied configuration
    Assistant.query.filter_by(template_id=template.id).update({"template_id": None})
    db.session.delete(template)
    db.session.commit()
    return jsonify({"message": "Template deleted successfully"}), 200


################################
## Groups
################################

@admin_bp.route('/groups', methods=['GET'])
@authenticate
@require_role('admin')
def list_groups(user):
    groups = Group.query.order_by(Group.name).all()
    return jsonify([g.to_dict() for g in groups]), 200


@admin_bp.route('/groups', methods=['POST'])
@authenticate
@require_role('admin')
def create_group(user):
    data = _json_body()
    name = (data.get("name") or "").strip()
    if not name:
        raise ValidationError("name is required")

    group = Group(name=name, description=data.get("description"))
    db.session.add(group)
    _commit_or_conflict("A group with this name already exists")
    return jsonify(group.to_dict()), 201


@admin_bp.route('/groups/<int:group_id>', methods=['PUT'])
@authenticate
@require_role('admin')
def update_group(user, group_id):
    group = _get_or_404(Group, group_id, "Group")
    data = _json_body()
    if "name" in data:
        name = (data.get("name") or "").strip()
        if not name:
            raise ValidationError("name cannot be empty")
        group.name = name
    if "description" in data:
        group.description = data.get("description")

    _commit_or_conflict("A group with this name already exists")
    return jsonify(group.to_dict()), 200


@admin_bp.route('/groups/<int:group_id>', methods=['DELETE'])
@authenticate
@require_role('admin')
def delete_group(user, group_id):
    group = _get_or_404(Group, group_id, "Group")
    if Client.query.filter_by(group_id=group.id).first() or Template.query.filter_by(group_id=group.id).first():
        raise ConflictError("Group still has users or templates")

    db.session.delete(group)
    db.session.commit()
    return jsonify({"message": "Group deleted successfully"}), 200


################################
## Users
################################

def _validate_role(role):
    if role not in ROLES:
        raise ValidationError(f"role must be one of {', '.join(ROLES)}")
    return role


@admin_bp.route('/users', methods=['GET'])
@authenticate
@require_role('admin')
def list_users(user):
    clients = Client.query.order_by(Client.id).all()
    return jsonify([c.to_dict() for c in clients]), 200


@admin_bp.route('/users', methods=['POST'])
@authenticate
@require_role('admin')
def create_user(user):
    data = _json_body()
    email = (data.get("email") or "").strip().lower()
    password = data.get("password")
    name = (data.get("name") or "").strip()
    if not email or not password or not name:
        raise ValidationError("email, password and name are required")

    client = Client(
        email=email,
        name=name,
        role=_validate_role(data.get("role", "user")),
        is_active=bool(data.get("is_active", True)),
        group_id=_group_id_from(data)
    )
    client.set_password(password)
    db.session.add(client)
    _commit_or_conflict("A user with this email already exists")

    logger.info(f"[Client: {user['id']}] Created user {client.id}")
    return jsonify(client.to_dict()), 201


@admin_bp.route('/users/<int:client_id>', methods=['PUT'])
@authenticate
@require_role('admin')
def update_user(user, client_id):
    client = _get_or_404(Client, client_id, "User")
    data = _json_body()

    if "email" in data:
        client.email = (data.get("email") or "").strip().lower()
        if not client.email:
            raise ValidationError("email cannot be empty")
    if "name" in data:
        client.name = (data.get("name") or "").strip()
    if "role" in data:
        client.role = _validate_role(data.get("role"))
    if "group_id" in data:
        client.group_id = _group_id_from(data)
    if "is_active" in data:
        client.is_active = bool(data.get("is_active"))
    if data.get("password"):
        client.set_password(data["password"])

    _commit_or_conflict("A user with this email already exists")

    # Sessions carry role and group; make the user log in again
    purge_sessions_for_client(client.id)
    db.session.commit()
    return jsonify(client.to_dict()), 200


@admin_bp.route('/users/<int:client_id>', methods=['DELETE'])
@authenticate
@require_role('admin')
def delete_user(user, client_id):
    client = _get_or_404(Client, client_id, "User")
    if Assistant.query.filter_by(client_id=client.id).first():
        raise ConflictError("User still owns assistants; deactivate the user instead")

    purge_sessions_for_client(client.id)
    db.session.delete(client)
    db.session.commit()
    return jsonify({"message": "User deleted successfully"}), 200


################################
## Assistants
################################

@admin_bp.route('/assistants', methods=['GET'])
@authenticate
@require_role('admin')
def list_all_assistants(user):
    assistants = Assistant.query.filter_by(is_deleted=False).order_by(Assistant.id).all()
    return jsonify([a.to_dict() for a in assistants]), 200
