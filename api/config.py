"""
Environment-aware configuration.
Values come from the process environment, with .env loaded first.
The selected class is handed to create_app(), which builds every
collaborator from it; nothing reads these values at import time elsewhere.
"""
import os
from dotenv import load_dotenv
from datetime import timedelta

load_dotenv()  # Read .env if present


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


class BaseConfig:
    APP_NAME = os.getenv("APP_NAME", "Auth Scaffold")
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")  # Set a strong key in production
    DEBUG = False
    TESTING = False
    # CORS: in dev we usually allow '*', in prod supply a comma-separated list in env
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")
    APP_ENV = os.getenv("APP_ENV", "dev")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///auth-scaffold.db")
    SQLALCHEMY_ECHO = _env_bool("SQLALCHEMY_ECHO", "false")

    JWT_SECRET = os.getenv("JWT_SECRET", "dev-secret-change-me")
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_ISSUER = os.getenv("JWT_ISSUER", "auth-scaffold-api")
    ACCESS_TOKEN_EXPIRES = timedelta(minutes=int(os.getenv("ACCESS_TOKEN_EXPIRES_MINUTES", "15")))
    REFRESH_TOKEN_EXPIRES = timedelta(days=int(os.getenv("REFRESH_TOKEN_EXPIRES_DAYS", "7")))
    VERIFY_EMAIL_CODE_LENGTH = int(os.getenv("VERIFY_EMAIL_CODE_LENGTH", "6"))
    # When false a failed last_login_at write is logged and login still succeeds
    LAST_LOGIN_UPDATE_REQUIRED = _env_bool("LAST_LOGIN_UPDATE_REQUIRED", "true")

    MAIL_BACKEND = os.getenv("MAIL_BACKEND", "console")  # smtp | console
    MAIL_SERVER = os.getenv("MAIL_SERVER", "smtp.gmail.com")
    MAIL_PORT = int(os.getenv("MAIL_PORT", "587"))
    MAIL_USERNAME = os.getenv("MAIL_USERNAME")
    MAIL_PASSWORD = os.getenv("MAIL_PASSWORD")
    MAIL_USE_TLS = _env_bool("MAIL_USE_TLS", "true")
    MAIL_FROM_ADDR = os.getenv("MAIL_FROM_ADDR", "no-reply@localhost")
    MAIL_FROM_NAME = os.getenv("MAIL_FROM_NAME", "Auth Scaffold")
    MAIL_TIMEOUT = float(os.getenv("MAIL_TIMEOUT", "10"))

    REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")
    TASK_QUEUE_NAME = os.getenv("TASK_QUEUE_NAME", "auth")
    TASK_RETRY_MAX_ATTEMPTS = int(os.getenv("TASK_RETRY_MAX_ATTEMPTS", "3"))
    TASK_JOB_TIMEOUT = int(os.getenv("TASK_JOB_TIMEOUT", "60"))
    # false: rq runs jobs inside enqueue(), no worker needed
    TASKS_ASYNC = _env_bool("TASKS_ASYNC", "true")


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")


class ProductionConfig(BaseConfig):
    DEBUG = False
    MAIL_BACKEND = os.getenv("MAIL_BACKEND", "smtp")


class TestingConfig(BaseConfig):
    TESTING = True
    DATABASE_URL = "sqlite://"
    JWT_SECRET = "test-secret"
    MAIL_BACKEND = "console"
    TASKS_ASYNC = False
    LOG_LEVEL = "DEBUG"


def get_config(name: str | None):
    """
    Select config class.
    - If name is provided, choose by name.
    - Else choose based on APP_ENV (dev/prod/test).
    """
    env = (name or os.getenv("APP_ENV", "dev")).lower()
    if env in ["prod", "production"]:
        return ProductionConfig
    if env in ["test", "testing"]:
        return TestingConfig
    return DevelopmentConfig
