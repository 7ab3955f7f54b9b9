from avatar_api import db
from datetime import datetime, timezone

# Configuration columns shared by assistants and templates
CONFIG_FIELDS = (
    "name", "instructions", "model", "temperature", "top_p",
    "avatar", "voice", "background", "language"
)

# Subset mirrored on the remote assistant
REMOTE_FIELDS = ("name", "instructions", "model", "temperature", "top_p")


class Assistant(db.Model):
    __tablename__ = "assistants"
    id = db.Column(db.Integer, primary_key=True)
    asst_id = db.Column(db.String(64), unique=True, nullable=False)
    client_id = db.Column(db.Integer, db.ForeignKey('clients.id'), nullable=False)
    template_id = db.Column(db.Integer, db.ForeignKey('assistant_templates.id'), nullable=True)
    name = db.Column(db.String(255), nullable=False)
    instructions = db.Column(db.Text, nullable=False, default="")
    model = db.Column(db.String(64), nullable=False)
    temperature = db.Column(db.Float, nullable=False, default=1.0)
    top_p = db.Column(db.Float, nullable=False, default=1.0)
    avatar = db.Column(db.String(255), nullable=True)
    voice = db.Column(db.String(64), nullable=True)
    background = db.Column(db.String(255), nullable=True)
    language = db.Column(db.String(32), nullable=True)
    file_search = db.Column(db.Boolean, nullable=False, default=False)
    vector_store_id = db.Column(db.String(64), nullable=True)
    is_deleted = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc)
    )

    client = db.relationship('Client', backref='assistants')

    def to_dict(self):
        return {
            "id": self.id,
            "asst_id": self.asst_id,
            "client_id": self.client_id,
            "template_id": self.template_id,
            "name": self.name,
            "instructions": self.instructions,
            "model": self.model,
            "temperature": self.temperature,
            "top_p": self.top_p,
            "avatar": self.avatar,
            "voice": self.voice,
            "background": self.background,
            "language": self.language,
            "file_search": self.file_search,
            "vector_store_id": self.vector_store_id,
            "is_deleted": self.is_deleted,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None
        }

    def to_avatar_dict(self):
        return {
            "asst_id": self.asst_id,
            "name": self.name,
            "avatar": self.avatar,
            "voice": self.voice,
            "background": self.background,
            "language": self.language
        }
