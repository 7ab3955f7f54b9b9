from avatar_api import db
from datetime import datetime, timezone

MESSAGE_ROLES = ("user", "assistant")


class Thread(db.Model):
    __tablename__ = "threads"
    id = db.Column(db.Integer, primary_key=True)
    thread_id = db.Column(db.String(64), unique=True, nullable=False)
    assistant_id = db.Column(db.Integer, db.ForeignKey('assistants.id'), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    assistant = db.relationship('Assistant', backref='threads')

    def to_dict(self):
        return {
            "id": self.id,
            "thread_id": self.thread_id,
            "asst_id": self.assistant.asst_id if self.assistant else None,
            "created_at": self.created_at.isoformat() if self.created_at else None
        }


class Message(db.Model):
    __tablename__ = "messages"
    id = db.Column(db.Integer, primary_key=True)
    thread_id = db.Column(db.Integer, db.ForeignKey('threads.id'), nullable=False)
    role = db.Column(db.String(16), nullable=False)  # 'user' or 'assistant'
    content = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    thread = db.relationship('Thread', backref='messages')

    def to_dict(self):
        return {
            "id": self.id,
            "thread_id": self.thread.thread_id if self.thread else None,
            "role": self.role,
            "content": self.content,
            "created_at": self.created_at.isoformat() if self.created_at else None
        }
