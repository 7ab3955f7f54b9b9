from flask import Blueprint, jsonify
from avatar_api.models.assistant import Assistant
from avatar_api.models.client import Client
from avatar_api.models.group import Group
from avatar_api.models.template import Template
from avatar_api.utils.decorators import authenticate
from sqlalchemy import or_
import logging

logger = logging.getLogger(__name__)

group_bp = Blueprint('group', __name__, url_prefix='/group')


def _caller_group(user):
    if not user['client_group']:
        return None
    return Group.query.filter_by(name=user['client_group']).first()


@group_bp.route('/users', methods=['GET'])
@authenticate
def list_group_users(user):
    group = _caller_group(user)
    if not group:
        return jsonify([]), 200

    clients = Client.query.filter_by(group_id=group.id).order_by(Client.name).all()
    return jsonify([c.to_dict() for c in clients]), 200


@group_bp.route('/assistants', methods=['GET'])
@authenticate
def list_group_assistants(user):
    group = _caller_group(user)
    if not group:
        return jsonify([]), 200

    assistants = Assistant.query.join(Client, Assistant.client_id == Client.id)\
        .filter(Client.group_id == group.id, Assistant.is_deleted == False)\
        .order_by(Assistant.id).all()
    return jsonify([a.to_dict() for a in assistants]), 200


@group_bp.route('/templates', methods=['GET'])
@authenticate
def list_group_templates(user):
    """Templates a member may seed assistants from: the group's own and shared ones."""
    group = _caller_group(user)
    condition = Template.group_id.is_(None)
    if group:
        condition = or_(condition, Template.group_id == group.id)

    templates = Template.query.filter(condition).order_by(Template.name).all()
    return jsonify([t.to_dict() for t in templates]), 200
