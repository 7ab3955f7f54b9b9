from avatar_api import db
from datetime import datetime, timezone


class Template(db.Model):
    __tablename__ = "assistant_templates"
    id = db.Column(db.Integer, primary_key=True)
    group_id = db.Column(db.Integer, db.ForeignKey('groups.id'), nullable=True)
    name = db.Column(db.String(255), nullable=False)
    instructions = db.Column(db.Text, nullable=True)
    model = db.Column(db.String(64), nullable=True)
    temperature = db.Column(db.Float, nullable=True)
    top_p = db.Column(db.Float, nullable=True)
    avatar = db.Column(db.String(255), nullable=True)
    voice = db.Column(db.String(64), nullable=True)
    background = db.Column(db.String(255), nullable=True)
    language = db.Column(db.String(32), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    group = db.relationship('Group', backref='templates')

    def to_dict(self):
        return {
            'id': self.id,
            'group_id': self.group_id,
            'client_group': self.group.name if self.group else None,
            'name': self.name,
            'instructions': self.instructions,
            'model': self.model,
            'temperature': self.temperature,
            'top_p': self.top_p,
            'avatar': self.avatar,
            'voice': self.voice,
            'background': self.background,
            'language': self.language,
            'created_at': self.created_at.isoformat() if self.created_at else None
        }
