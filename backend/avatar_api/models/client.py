from avatar_api import db
from datetime import datetime, timezone
from werkzeug.security import generate_password_hash, check_password_hash

ROLES = ("admin", "group_admin", "user")


class Client(db.Model):
    __tablename__ = "clients"
    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    name = db.Column(db.String(255), nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    role = db.Column(db.String(32), nullable=False, default="user")
    group_id = db.Column(db.Integer, db.ForeignKey('groups.id'), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    group = db.relationship('Group', backref='clients')

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        return check_password_hash(self.password_hash, password)

    @property
    def group_name(self):
        return self.group.name if self.group else None

    def to_dict(self):
        # password_hash is never serialized
        return {
            'id': self.id,
            'email': self.email,
            'name': self.name,
            'is_active': self.is_active,
            'role': self.role,
            'group_id': self.group_id,
            'client_group': self.group_name,
            'created_at': self.created_at.isoformat() if self.created_at else None
        }
