from functools import wraps
from flask import request, jsonify, current_app
from avatar_api.services.auth_service import load_session


def session_token():
    auth_header = request.headers.get('Authorization')
    if auth_header and auth_header.startswith('Bearer '):
        return auth_header.split(' ', 1)[1].strip()
    return request.cookies.get(current_app.config["SESSION_COOKIE_NAME_AUTH"])


def authenticate(f):
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = session_token()
        if not token:
            return jsonify({'error': 'Unauthorized', 'kind': 'unauthorized'}), 401

        session = load_session(token)
        if not session:
            return jsonify({'error': 'Session expired or invalid', 'kind': 'unauthorized'}), 401

        return f(session.user(), *args, **kwargs)

    return decorated_function


def require_role(*roles):
    """Must sit below @authenticate so the session user is the first argument."""
    def decorator(f):
        @wraps(f)
        def decorated_function(user, *args, **kwargs):
            if user['role'] not in roles:
                return jsonify({'error': 'Insufficient permissions', 'kind': 'forbidden'}), 403
            return f(user, *args, **kwargs)
        return decorated_function
    return decorator
