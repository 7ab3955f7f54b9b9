from flask import Blueprint, request, jsonify
from avatar_api.models.group import Group
from avatar_api.services import analytics_service
from avatar_api.utils.access import scoped_client_ids
from avatar_api.utils.decorators import authenticate, require_role
from avatar_api.utils.errors import ValidationError
from sqlalchemy.exc import SQLAlchemyError
import logging

logger = logging.getLogger(__name__)

analytics_bp = Blueprint('analytics', __name__, url_prefix='')


def _scope(user):
    """
    ?client_id=<id> looks at one client (access checked), ?scope=group at the
    caller's whole group; otherwise the caller's own assistants.
    """
    client_id = request.args.get("client_id")
    if client_id is not None:
        try:
            client_id = int(client_id)
        except ValueError:
            raise ValidationError("client_id must be an integer")
    return scoped_client_ids(user, client_id=client_id, scope=request.args.get("scope"))


def _run(user, label, fn, *args, **kwargs):
    try:
        return fn(*args, **kwargs)
    except SQLAlchemyError as e:
        logger.error(f"[Client: {user['id']}] {label} Error: {e}")
        raise


@analytics_bp.route('/assistant-activity', methods=['GET'])
@authenticate
def assistant_activity(user):
    result = _run(user, "Assistant Activity", analytics_service.assistant_activity, _scope(user))
    return jsonify(result), 200


@analytics_bp.route('/message-volume', methods=['GET'])
@authenticate
def message_volume(user):
    period = request.args.get("period", "day")
    result = _run(user, "Message Volume", analytics_service.message_volume, _scope(user), period)
    return jsonify({"period": period, "data": result}), 200


@analytics_bp.route('/average-response-time', methods=['GET'])
@authenticate
def average_response_time(user):
    result = _run(user, "Average Response Time", analytics_service.average_response_time, _scope(user))
    return jsonify(result), 200


@analytics_bp.route('/thread-activity', methods=['GET'])
@authenticate
def thread_activity(user):
    result = _run(user, "Thread Activity", analytics_service.thread_activity, _scope(user))
    return jsonify(result), 200


@analytics_bp.route('/most-active-threads', methods=['GET'])
@authenticate
def most_active_threads(user):
    result = _run(user, "Most Active Threads", analytics_service.most_active_threads, _scope(user))
    return jsonify(result), 200


@analytics_bp.route('/dashboard/summary', methods=['GET'])
@authenticate
def dashboard_summary(user):
    result = _run(user, "Dashboard Summary", analytics_service.dashboard_summary, _scope(user))
    return jsonify(result), 200


@analytics_bp.route('/dashboard/messages-by-role', methods=['GET'])
@authenticate
def messages_by_role(user):
    result = _run(user, "Messages By Role", analytics_service.messages_by_role, _scope(user))
    return jsonify(result), 200


@analytics_bp.route('/dashboard/template-usage', methods=['GET'])
@authenticate
def template_usage(user):
    group = Group.query.filter_by(name=user['client_group']).first() if user['client_group'] else None
    result = _run(
        user, "Template Usage", analytics_service.template_usage,
        _scope(user), group.id if group else None
    )
    return jsonify(result), 200


@analytics_bp.route('/dashboard/group-overview', methods=['GET'])
@authenticate
@require_role('admin')
def group_overview(user):
    result = _run(user, "Group Overview", analytics_service.group_overview)
    return jsonify(result), 200
