# config.py
import os
from datetime import timedelta


def _csv_env(name: str, default: str = "") -> list[str]:
    val = os.getenv(name, default)
    # split only if non-empty; strip whitespace
    return [x.strip() for x in val.split(",") if x.strip()] if val else []


def _int_env(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


def _float_env(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


class BaseConfig:
    DEBUG = False
    TESTING = False
    JSON_SORT_KEYS = False
    MAX_CONTENT_LENGTH = 2 * 1024 * 1024  # 2 MB of JSON is plenty for a resume

    # Secrets (must be set in env for prod)
    SECRET_KEY = os.getenv("APP_SECRET_KEY") or "dev-only-secret-change-me"
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY") or "dev-only-jwt-secret-change-me"
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(days=7)
    JWT_TOKEN_LOCATION = ["headers"]

    # CORS
    CORS_ORIGINS = _csv_env("CORS_ORIGINS", "http://localhost:5173,http://localhost:3000")

    # Persistence: "mongo" or "memory"
    STORE_BACKEND = os.getenv("STORE_BACKEND", "mongo")
    MONGO_URI = os.getenv("MONGO_URI", "mongodb://localhost:27017")
    MONGO_DB = os.getenv("MONGO_DB", "career_studio")

    # LLM (OpenAI or any OpenAI-compatible endpoint such as OpenRouter)
    LLM_API_KEY = os.getenv("OPENAI_API_KEY") or os.getenv("OPENROUTER_API_KEY")
    LLM_BASE_URL = os.getenv("LLM_BASE_URL") or None
    LLM_MODEL = os.getenv("LLM_MODEL", "gpt-4o-mini")
    LLM_TIMEOUT = _float_env("LLM_TIMEOUT", 60.0)
    INTERVIEW_QUESTION_COUNT = _int_env("INTERVIEW_QUESTION_COUNT", 5)

    # Rate limiting
    RATELIMIT_ENABLED = True
    RATELIMIT_STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI", "memory://")

    # Logging
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    LOG_DIR = os.getenv("LOG_DIR") or None


class DevConfig(BaseConfig):
    DEBUG = True
    STORE_BACKEND = os.getenv("STORE_BACKEND", "memory")


class TestConfig(BaseConfig):
    TESTING = True
    STORE_BACKEND = "memory"
    JWT_SECRET_KEY = "test-jwt-secret-with-enough-length-for-hs256"
    RATELIMIT_ENABLED = False
    LLM_API_KEY = None
    LOG_DIR = None
    INTERVIEW_QUESTION_COUNT = 3


class ProdConfig(BaseConfig):
    pass


def validate_required_secrets():
    if os.getenv("ENV") == "prod":
        if not os.getenv("APP_SECRET_KEY") or not os.getenv("JWT_SECRET_KEY"):
            raise RuntimeError("APP_SECRET_KEY and JWT_SECRET_KEY must be set in production")
