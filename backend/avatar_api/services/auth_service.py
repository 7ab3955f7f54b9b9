from avatar_api import db
from avatar_api.models.client import Client
from avatar_api.models.auth_session import AuthSession
from avatar_api.utils.errors import AuthError
from datetime import datetime, timezone, timedelta
from flask import current_app
import secrets
import logging

logger = logging.getLogger(__name__)


def login(email, password):
    """
    Authenticate an active client and open a server-side session.

    Passwords are compared against a salted hash; the stored value is never
    the clear text.
    """
    if not email or not password:
        raise AuthError("Email and password are required")

    client = Client.query.filter_by(email=email, is_active=True).first()
    if not client or not client.check_password(password):
        logger.info(f"Failed login attempt for {email}")
        raise AuthError("Invalid credentials")

    lifetime = timedelta(hours=current_app.config["SESSION_LIFETIME_HOURS"])
    session = AuthSession(
        token=secrets.token_urlsafe(32),
        client_id=client.id,
        email=client.email,
        name=client.name,
        role=client.role,
        group_name=client.group_name,
        expires_at=datetime.now(timezone.utc) + lifetime
    )
    db.session.add(session)
    db.session.commit()

    logger.info(f"[Client: {client.id}] Logged in")
    return session, client


def load_session(token):
    """Return the live session for a token, or None. Expired rows are removed."""
    if not token:
        return None

    session = db.session.get(AuthSession, token)
    if not session:
        return None

    if session.is_expired():
        logger.info(f"[Client: {session.client_id}] Session expired")
        db.session.delete(session)
        db.session.commit()
        return None

    return session


def logout(token):
    """Invalidate a session. Returns True when a live session was removed."""
    if not token:
        return False

    removed = AuthSession.query.filter_by(token=token).delete()
    db.session.commit()
    return removed > 0


def purge_sessions_for_client(client_id):
    AuthSession.query.filter_by(client_id=client_id).delete()
