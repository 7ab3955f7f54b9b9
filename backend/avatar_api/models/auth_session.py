from avatar_api import db
from datetime import datetime, timezone


class AuthSession(db.Model):
    __tablename__ = "auth_sessions"
    token = db.Column(db.String(128), primary_key=True)
    client_id = db.Column(db.Integer, db.ForeignKey('clients.id', ondelete='CASCADE'), nullable=False)
    email = db.Column(db.String(255), nullable=False)
    name = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(32), nullable=False)
    group_name = db.Column(db.String(120), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False)

    def is_expired(self, now=None):
        now = now or datetime.now(timezone.utc)
        expires_at = self.expires_at
        # SQLite hands back naive datetimes
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        return expires_at <= now

    def user(self):
        """The session-bound identity handed to route handlers."""
        return {
            'id': self.client_id,
            'email': self.email,
            'name': self.name,
            'role': self.role,
            'client_group': self.group_name
        }
