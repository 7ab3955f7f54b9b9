from flask import Blueprint, request, jsonify, current_app, send_from_directory
from avatar_api import db
from avatar_api.models.files import AssistantFile, ThreadFile
from avatar_api.models.thread import Thread
from avatar_api.services import file_service
from avatar_api.utils.access import get_assistant_for, get_thread_for, can_access_client
from avatar_api.utils.decorators import authenticate
from avatar_api.utils.errors import ValidationError, NotFoundError, ForbiddenError
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.utils import secure_filename
import os
import logging

logger = logging.getLogger(__name__)

file_bp = Blueprint('files', __name__, url_prefix='')


@file_bp.route('/files_list/<asst_id>', methods=['GET'])
@authenticate
def list_thread_files(user, asst_id):
    """Files attached to any thread of the assistant."""
    assistant = get_assistant_for(user, asst_id, include_deleted=True)
    try:
        files = ThreadFile.query.join(Thread, ThreadFile.thread_id == Thread.id)\
            .filter(Thread.assistant_id == assistant.id)\
            .order_by(ThreadFile.created_at.desc(), ThreadFile.id.desc()).all()
        return jsonify([f.to_dict() for f in files]), 200
    except SQLAlchemyError as e:
        logger.error(f"[Client: {user['id']}] File Retrieval Error: {e}")
        raise


@file_bp.route('/asst_files/<asst_id>', methods=['GET'])
@authenticate
def list_assistant_files(user, asst_id):
    """Files indexed in the assistant's vector store."""
    assistant = get_assistant_for(user, asst_id, include_deleted=True)
    files = AssistantFile.query.filter_by(assistant_id=assistant.id).order_by(AssistantFile.id).all()
    return jsonify([f.to_dict() for f in files]), 200


@file_bp.route('/upload_files/<asst_id>', methods=['POST'])
@authenticate
def upload_files(user, asst_id):
    uploads = [f for f in request.files.getlist("files") if f and f.filename]
    logger.info(f"[Client: {user['id']}] Received request to upload {len(uploads)} files to {asst_id}")
    assistant = get_assistant_for(user, asst_id)

    records = file_service.upload_files(assistant, uploads)
    return jsonify({
        "message": "Files uploaded successfully",
        "vector_store_id": assistant.vector_store_id,
        "files": [r.to_dict() for r in records]
    }), 201


@file_bp.route('/delete_file/<int:file_id>', methods=['DELETE'])
@authenticate
def delete_file(user, file_id):
    logger.info(f"[Client: {user['id']}] Received request to delete file {file_id}")
    record = db.session.get(AssistantFile, file_id)
    if not record:
        raise NotFoundError("File not found")
    if not can_access_client(user, record.assistant.client):
        raise ForbiddenError("Not allowed to delete this file")

    file_service.delete_assistant_file(record)
    return jsonify({"message": "File deleted successfully"}), 200


@file_bp.route('/thread_files/<thread_id>', methods=['POST'])
@authenticate
def upload_thread_file(user, thread_id):
    storage = request.files.get("file")
    if not storage or not storage.filename:
        raise ValidationError("No file uploaded")

    thread = get_thread_for(user, thread_id)
    record = file_service.save_thread_file(thread, storage)
    logger.info(f"[Client: {user['id']}] Stored {record.file_name} for thread {thread_id}")
    return jsonify({"message": "File uploaded successfully", "file": record.to_dict()}), 201


def _file_owner(file_name):
    """Owner of the stored copy named exactly file_name, or None."""
    thread_file = ThreadFile.query.filter_by(file_name=file_name).first()
    if thread_file:
        return thread_file.thread.assistant.client
    assistant_file = AssistantFile.query.filter_by(stored_name=file_name).first()
    if assistant_file:
        return assistant_file.assistant.client
    return None


@file_bp.route('/download/<path:file_name>', methods=['GET'])
@authenticate
def download_file(user, file_name):
    # Anything that is not a plain file name (e.g. "../x") is rejected
    if secure_filename(file_name) != file_name:
        raise ValidationError("Invalid file name")

    owner = _file_owner(file_name)
    if owner is None:
        raise NotFoundError("File not found")
    if not can_access_client(user, owner):
        raise ForbiddenError("Not allowed to download this file")

    folder = os.path.abspath(current_app.config["UPLOAD_FOLDER"])
    if not os.path.isfile(os.path.join(folder, file_name)):
        raise NotFoundError("File not found")
    return send_from_directory(folder, file_name, as_attachment=True)
