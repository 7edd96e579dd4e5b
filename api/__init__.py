import logging

from flask import Flask
from flasgger import Swagger
from flask_cors import CORS

from .config import get_config
from .errors import register_error_handlers
from models import DBStorage, UserStore, RefreshTokenStore
from services.auth_service import AuthService, AuthSettings
from services.mailer import build_mailer
from services.tasks import build_task_queue
from services.user_service import UserService

# Minimal Swagger config: exposes /swagger.json and UI at /apidocs
SWAGGER_TEMPLATE = {
    "swagger": "2.0",
    "info": {
        "title": "Auth Scaffold API",
        "version": "1.0.0",
        "description": "Registration, login, token rotation and email verification.",
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

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO"):
    """Root logging setup. basicConfig adds no handler when one exists (pytest, gunicorn)."""
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
    logging.getLogger().setLevel(level.upper())


def create_app(config_name: str | None = None, **overrides) -> Flask:
    """
    Application factory: creates and configures the Flask app.

    Collaborators (storage, stores, mailer, task queue, services) are
    built here from the selected config and kept in app.extensions.
    Any of "storage", "mailer", "tasks", "clock" can be passed in to replace
    the default (tests); other keyword overrides update app.config.
    """
    app = Flask(__name__)

    app.config.from_object(get_config(config_name))
    collaborators = {k: overrides.pop(k) for k in ("storage", "mailer", "tasks", "clock") if k in overrides}
    app.config.update(overrides)

    configure_logging(app.config["LOG_LEVEL"])

    # Cross-Origin Resource Sharing: enable for dev, configurable for prod
    CORS(app, resources={r"/*": {"origins": app.config.get("CORS_ORIGINS", "*")}})

    Swagger(app, template=SWAGGER_TEMPLATE, config=SWAGGER_CONFIG)

    register_error_handlers(app)

    storage = collaborators.get("storage")
    if storage is None:
        storage = DBStorage(app.config["DATABASE_URL"], echo=app.config["SQLALCHEMY_ECHO"])
        storage.reload()

    tasks = collaborators.get("tasks") or build_task_queue(app.config)

    mailer = collaborators.get("mailer") or build_mailer(app.config)

    user_store = UserStore(storage)
    token_store = RefreshTokenStore(storage)
    service_kwargs = {}
    if "clock" in collaborators:
        service_kwargs["clock"] = collaborators["clock"]
    auth_service = AuthService(
        users=user_store,
        tokens=token_store,
        mailer=mailer,
        tasks=tasks,
        settings=AuthSettings.from_config(app.config),
        **service_kwargs,
    )
    user_service = UserService(user_store)

    app.extensions["storage"] = storage
    app.extensions["user_store"] = user_store
    app.extensions["refresh_token_store"] = token_store
    app.extensions["mailer"] = mailer
    app.extensions["tasks"] = tasks
    app.extensions["auth_service"] = auth_service
    app.extensions["user_service"] = user_service

    from .health import bp as health_bp
    from .auth import bp as auth_bp
    from .users import bp as users_bp

    app.register_blueprint(health_bp, url_prefix="/api/v1")
    app.register_blueprint(auth_bp, url_prefix="/api/v1/auth")
    app.register_blueprint(users_bp, url_prefix="/api/v1")

    # Ensure the DB session is removed at the end of each request/app context
    @app.teardown_appcontext
    def remove_session(exception=None):
        storage.close()

    @app.route("/")
    def root():
        return {
            "message": "Welcome to Auth Scaffold API",
            "docs": "/apidocs/",
            "health": "/api/v1/health",
        }, 200

    return app
