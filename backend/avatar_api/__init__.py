from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_cors import CORS
from avatar_api.config import Config
import logging
import os

# Initialize Flask extensions
db = SQLAlchemy()
migrate = Migrate()


def _engine_options(app):
    # SQLite (tests, local runs) manages its own pool; bound the pool elsewhere
    if app.config["SQLALCHEMY_DATABASE_URI"].startswith("sqlite"):
        return {}
    return {
        "pool_size": app.config["DB_POOL_SIZE"],
        "max_overflow": 0,
        "pool_timeout": app.config["DB_POOL_TIMEOUT"],
        "pool_pre_ping": True,
    }


def create_app(config_class=Config, openai_factory=None):
    app = Flask(__name__)
    app.config.from_object(config_class)
    app.config.setdefault("SQLALCHEMY_ENGINE_OPTIONS", _engine_options(app))

    # Configure logging
    logging.basicConfig(
        level=app.config.get("LOG_LEVEL", "INFO"),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    logger = logging.getLogger(__name__)

    # Initialize extensions
    CORS(app, supports_credentials=True)
    db.init_app(app)
    migrate.init_app(app, db)

    # Models reference each other by name; load them all before first use
    from avatar_api.models import (  # noqa: F401
        group, client, template, assistant, thread, files, assistant_function, auth_session
    )

    os.makedirs(app.config["UPLOAD_FOLDER"], exist_ok=True)

    # Per-group OpenAI credentials, built once per app
    from avatar_api.services.tenant_service import TenantRegistry
    app.extensions["tenants"] = TenantRegistry.from_config(app.config, openai_factory)

    from avatar_api.utils.errors import register_error_handlers
    register_error_handlers(app)

    # Register blueprints
    # Import routes here to avoid circular imports
    from avatar_api.routes.auth_routes import auth_bp
    from avatar_api.routes.assistant_routes import assistant_bp
    from avatar_api.routes.file_routes import file_bp
    from avatar_api.routes.conversation_routes import conversation_bp
    from avatar_api.routes.admin_routes import admin_bp
    from avatar_api.routes.group_routes import group_bp
    from avatar_api.routes.analytics_routes import analytics_bp
    app.register_blueprint(auth_bp)
    app.register_blueprint(assistant_bp)
    app.register_blueprint(file_bp)
    app.register_blueprint(conversation_bp)
    app.register_blueprint(admin_bp)
    app.register_blueprint(group_bp)
    app.register_blueprint(analytics_bp)

    logger.info(f"Using default OpenAI model: {app.config['OPENAI_MODEL']}")
    return app
