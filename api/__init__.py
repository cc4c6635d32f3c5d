from flask import Flask
from flasgger import Swagger
from flask_cors import CORS
import logging

from .config import get_config
from .errors import register_error_handlers
from models import storage  # DBStorage singleton (scoped_session)
from models.user import User, Role
from models.schemas.user import UserCreateSchema
from utils.security import hash_password
from utils.token_service import TokenConfig, TokenService

logger = logging.getLogger(__name__)

# Minimal Swagger config: exposes /swagger.json and UI at /apidocs
SWAGGER_TEMPLATE = {
    "swagger": "2.0.0",
    "info": {
        "title": "Botanic Garden API",
        "version": "1.0.0",
        "description": "REST API for managing botanical garden plants, families, genera, sectors and map areas.",
    },
    "basePath": "/",  # blueprints are mounted under /api/v1
    "schemes": ["http"],
    "securityDefinitions": {
        "Bearer": {
            "type": "apiKey",
            "name": "Authorization",
            "in": "header",
            "description": "Enter the token with the `Bearer ` prefix, e.g. \"Bearer abcde12345\"."
        }
    }
}

SWAGGER_CONFIG = {
    "headers": [],
    "specs": [
        {
            "endpoint": "apispec_1",
            "route": "/swagger.json",
            "rule_filter": lambda rule: True,   # include all endpoints
            "model_filter": lambda tag: True,   # include all models
        }
    ],
    "static_url_path": "/flasgger_static",
    "swagger_ui": True,
    "specs_route": "/apidocs/",
}


def ensure_default_admin(email: str, password: str) -> None:
    """Create the admin account from config unless the email is taken.

    Raises marshmallow.ValidationError on a malformed address, since tokens
    for it would never verify.
    """
    data = UserCreateSchema().load({"email": email, "password": password})
    session = storage.get_session()
    if session.query(User).filter(User.email == data["email"]).first():
        return
    storage.new(User(email=data["email"], password_hash=hash_password(data["password"]), role=Role.ADMIN))
    storage.save()
    logger.info("Created default admin user %s", data["email"])


def create_app(config_name: str | None = None) -> Flask:
    """
    Application factory: creates and configures the Flask app.
    """
    app = Flask(__name__)

    # Load configuration (reads .env via get_config)
    app.config.from_object(get_config(config_name))

    # Cross-Origin Resource Sharing: enable for dev, configurable for prod
    CORS(app, resources={r"/*": {"origins": app.config.get("CORS_ORIGINS", "*")}})

    # Swagger UI and JSON
    Swagger(app, template=SWAGGER_TEMPLATE, config=SWAGGER_CONFIG)

    # Register global error handlers that return the uniform error envelope
    register_error_handlers(app)

    # Token service gets an immutable config snapshot, not the live app.config
    app.extensions["token_service"] = TokenService(TokenConfig.from_mapping(app.config), storage)

    from .health import bp as health_bp
    from .auth import bp as auth_bp
    from .users import bp as users_bp
    from .taxonomy import bp as taxonomy_bp
    from .plants import bp as plants_bp
    from .garden_map import bp as map_bp

    app.register_blueprint(health_bp, url_prefix="/api/v1")
    app.register_blueprint(auth_bp, url_prefix="/api/v1/auth")
    app.register_blueprint(users_bp, url_prefix="/api/v1")
    app.register_blueprint(taxonomy_bp, url_prefix="/api/v1")
    app.register_blueprint(plants_bp, url_prefix="/api/v1")
    app.register_blueprint(map_bp, url_prefix="/api/v1/map")

    # Ensure the DB session is removed at the end of each request/app context
    @app.teardown_appcontext
    def remove_session(exception=None):
        # calls scoped_session.remove(), preventing connection leaks
        storage.close()

    if app.config.get("DEFAULT_ADMIN_EMAIL") and app.config.get("DEFAULT_ADMIN_PASSWORD"):
        with app.app_context():
            ensure_default_admin(app.config["DEFAULT_ADMIN_EMAIL"], app.config["DEFAULT_ADMIN_PASSWORD"])

    @app.route("/")
    def root():
        return {
            "message": "Welcome to Botanic Garden API",
            "docs": "/apidocs/",
            "health": "/api/v1/health",
        }, 200

    return app
