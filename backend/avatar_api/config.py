import os
import re
from dotenv import load_dotenv

load_dotenv()


def _group_keys_from_env(environ):
    """
    Collect per-group OpenAI keys from OPENAI_API_KEY_<GROUP> variables.
    Keys are stored under the normalized group label (see group_env_label).
    """
    keys = {}
    prefix = "OPENAI_API_KEY_"
    for name, value in environ.items():
        if name.startswith(prefix) and value:
            keys[name[len(prefix):]] = value
    return keys


def group_env_label(group_name):
    # "Acme Corp" -> "ACME_CORP"
    return re.sub(r"[^A-Za-z0-9]", "_", group_name).upper()


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-change-me")

    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///avatar_api.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    DB_POOL_SIZE = int(os.getenv("DB_POOL_SIZE", 50))
    DB_POOL_TIMEOUT = int(os.getenv("DB_POOL_TIMEOUT", 5))

    SESSION_LIFETIME_HOURS = int(os.getenv("SESSION_LIFETIME_HOURS", 24))
    SESSION_COOKIE_NAME_AUTH = os.getenv("SESSION_COOKIE_NAME_AUTH", "avatar_session")
    SESSION_COOKIE_SECURE_AUTH = str(os.getenv("SESSION_COOKIE_SECURE", "false")).lower() == "true"

    OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
    OPENAI_GROUP_API_KEYS = _group_keys_from_env(os.environ)
    OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
    OPENAI_TIMEOUT = float(os.getenv("OPENAI_TIMEOUT", 60))
    OPENAI_MAX_RETRIES = int(os.getenv("OPENAI_MAX_RETRIES", 0))

    UPLOAD_FOLDER = os.getenv("UPLOAD_FOLDER", "uploads")
    MAX_CONTENT_LENGTH = int(os.getenv("MAX_CONTENT_LENGTH", 50 * 1024 * 1024))

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    PORT = int(os.getenv("PORT", 5000))
