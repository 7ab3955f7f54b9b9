from avatar_api import db
from datetime import datetime, timezone


class ThreadFile(db.Model):
    """A file attached to a conversation thread and kept on local disk."""
    __tablename__ = "files"
    id = db.Column(db.Integer, primary_key=True)
    thread_id = db.Column(db.Integer, db.ForeignKey('threads.id'), nullable=False)
    file_name = db.Column(db.String(255), nullable=False)  # name under UPLOAD_FOLDER
    original_name = db.Column(db.String(255), nullable=False)
    file_size = db.Column(db.Integer, nullable=False)
    mime_type = db.Column(db.String(128), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    thread = db.relationship('Thread', backref='files')

    def to_dict(self):
        return {
            'id': self.id,
            'thread_id': self.thread.thread_id if self.thread else None,
            'file_name': self.file_name,
            'original_name': self.original_name,
            'file_size': self.file_size,
            'mime_type': self.mime_type,
            'created_at': self.created_at.isoformat() if self.created_at else None
        }


class AssistantFile(db.Model):
    """A file indexed in an assistant's remote vector store."""
    __tablename__ = "assistant_files"
    id = db.Column(db.Integer, primary_key=True)
    assistant_id = db.Column(db.Integer, db.ForeignKey('assistants.id'), nullable=False)
    file_id = db.Column(db.String(64), nullable=False)
    vector_store_id = db.Column(db.String(64), nullable=False)
    file_name = db.Column(db.String(255), nullable=False)
    stored_name = db.Column(db.String(255), unique=True, nullable=False)  # name under UPLOAD_FOLDER
    file_size = db.Column(db.Integer, nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    assistant = db.relationship('Assistant', backref='files')

    def to_dict(self):
        return {
            'id': self.id,
            'asst_id': self.assistant.asst_id if self.assistant else None,
            'file_id': self.file_id,
            'vector_store_id': self.vector_store_id,
            'file_name': self.file_name,
            'stored_name': self.stored_name,
            'file_size': self.file_size,
            'created_at': self.created_at.isoformat() if self.created_at else None
        }
