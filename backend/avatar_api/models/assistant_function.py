from avatar_api import db
from datetime import datetime, timezone
import json


class AssistantFunction(db.Model):
    __tablename__ = "assistant_functions"
    __table_args__ = (db.UniqueConstraint('assistant_id', 'name', name='uq_assistant_function_name'),)
    id = db.Column(db.Integer, primary_key=True)
    assistant_id = db.Column(db.Integer, db.ForeignKey('assistants.id'), nullable=False)
    name = db.Column(db.String(64), nullable=False)
    description = db.Column(db.Text, nullable=True)
    parameters = db.Column(db.Text, nullable=False, default="{}")  # JSON schema
    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'parameters': json.loads(self.parameters) if self.parameters else {},
            'created_at': self.created_at.isoformat() if self.created_at else None
        }
