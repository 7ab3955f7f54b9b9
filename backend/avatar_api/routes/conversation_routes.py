from flask import Blueprint, request, jsonify
from avatar_api import db
from avatar_api.models.thread import Thread, Message, MESSAGE_ROLES
from avatar_api.utils.access import get_assistant_for, get_thread_for
from avatar_api.utils.decorators import authenticate
from avatar_api.utils.errors import ValidationError, ConflictError
from sqlalchemy.exc import SQLAlchemyError
import logging

logger = logging.getLogger(__name__)

conversation_bp = Blueprint('conversations', __name__, url_prefix='')


@conversation_bp.route('/threads/<asst_id>', methods=['POST'])
@authenticate
def create_thread(user, asst_id):
    data = request.get_json(silent=True) or {}
    thread_id = data.get("thread_id")
    if not isinstance(thread_id, str) or not thread_id.strip():
        raise ValidationError("thread_id is required")
    thread_id = thread_id.strip()

    assistant = get_assistant_for(user, asst_id)
    if Thread.query.filter_by(thread_id=thread_id).first():
        raise ConflictError("Thread already recorded")

    try:
        thread = Thread(thread_id=thread_id, assistant_id=assistant.id)
        db.session.add(thread)
        db.session.commit()
    except SQLAlchemyError as e:
        logger.error(f"[Client: {user['id']}] Thread Creation Error: {e}")
        raise

    logger.info(f"[Client: {user['id']}] Recorded thread {thread_id} for {asst_id}")
    return jsonify(thread.to_dict()), 201


@conversation_bp.route('/threads_list/<asst_id>', methods=['GET'])
@authenticate
def list_threads(user, asst_id):
    assistant = get_assistant_for(user, asst_id, include_deleted=True)
    threads = Thread.query.filter_by(assistant_id=assistant.id)\
        .order_by(Thread.created_at.desc(), Thread.id.desc()).all()
    return jsonify([t.to_dict() for t in threads]), 200


@conversation_bp.route('/messages/<thread_id>', methods=['POST'])
@authenticate
def create_message(user, thread_id):
    data = request.get_json(silent=True) or {}
    role = data.get("role")
    content = data.get("content")
    if role not in MESSAGE_ROLES:
        raise ValidationError("role must be 'user' or 'assistant'")
    if not isinstance(content, str) or not content:
        raise ValidationError("content is required")

    thread = get_thread_for(user, thread_id)
    try:
        message = Message(thread_id=thread.id, role=role, content=content)
        db.session.add(message)
        db.session.commit()
    except SQLAlchemyError as e:
        logger.error(f"[Client: {user['id']}] Message Creation Error: {e}")
        raise

    return jsonify(message.to_dict()), 201


@conversation_bp.route('/messages_list/<thread_id>', methods=['GET'])
@authenticate
def list_messages(user, thread_id):
    thread = get_thread_for(user, thread_id)
    messages = Message.query.filter_by(thread_id=thread.id)\
        .order_by(Message.created_at, Message.id).all()
    return jsonify([m.to_dict() for m in messages]), 200
