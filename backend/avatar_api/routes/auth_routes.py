from flask import Blueprint, request, jsonify, current_app
from avatar_api import db
from avatar_api.services import auth_service
from avatar_api.utils.decorators import authenticate, session_token
from datetime import timedelta
from sqlalchemy import text
import logging

logger = logging.getLogger(__name__)

auth_bp = Blueprint('auth', __name__, url_prefix='')


@auth_bp.route('/login', methods=['POST'])
def login():
    data = request.get_json(silent=True) or {}
    session, client = auth_service.login(data.get("email"), data.get("password"))

    response = jsonify({
        "message": "Login successful",
        "token": session.token,
        "user": client.to_dict()
    })
    response.set_cookie(
        current_app.config["SESSION_COOKIE_NAME_AUTH"],
        session.token,
        max_age=int(timedelta(hours=current_app.config["SESSION_LIFETIME_HOURS"]).total_seconds()),
        httponly=True,
        secure=current_app.config["SESSION_COOKIE_SECURE_AUTH"],
        samesite="Lax"
    )
    return response, 200


@auth_bp.route('/logout', methods=['POST'])
def logout():
    removed = auth_service.logout(session_token())
    if removed:
        logger.info("Session closed")

    response = jsonify({"message": "Logout successful"})
    response.delete_cookie(current_app.config["SESSION_COOKIE_NAME_AUTH"])
    return response, 200


@auth_bp.route('/me', methods=['GET'])
@authenticate
def me(user):
    return jsonify({"user": user}), 200


@auth_bp.route('/health', methods=['GET'])
def health():
    db.session.execute(text("SELECT 1"))
    return jsonify({"status": "ok"}), 200
