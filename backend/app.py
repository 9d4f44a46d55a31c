# app.py
from __future__ import annotations
import logging
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, jsonify
from flask_cors import CORS
from flask_talisman import Talisman

# --- Load env BEFORE importing config (so config sees env) ---
ENV_PATH = Path(__file__).with_name(".env")
load_dotenv(ENV_PATH)

# --- Local modules ---
from config import DevConfig, ProdConfig, validate_required_secrets
from logger import configure_logging
from errors import register_error_handlers
from storage import Store, build_store
from llm_client import LLMClient
from auth import auth_bp, init_auth, optional_user_id
from resume_api import resumes_bp
from interview_api import interviews_bp

log = logging.getLogger(__name__)


def _init_security_headers(app: Flask) -> None:
    if app.config.get("DEBUG") or app.config.get("TESTING"):
        # Dev: do not force HTTPS, allow localhost connects
        Talisman(
            app,
            force_https=False,
            content_security_policy={
                "default-src": ["'self'"],
                "connect-src": ["'self'", "http://localhost:8000", "http://localhost:5173"],
                "frame-ancestors": ["'none'"],
            },
            session_cookie_secure=False,
            frame_options="DENY",
            referrer_policy="strict-origin-when-cross-origin",
        )
    else:
        # Prod: strict CSP + HTTPS
        Talisman(
            app,
            force_https=True,
            content_security_policy={
                "default-src": ["'self'"],
                "base-uri": ["'self'"],
                "connect-src": ["'self'", "https:"],
                "frame-ancestors": ["'none'"],
            },
            session_cookie_secure=True,
            frame_options="DENY",
            referrer_policy="strict-origin-when-cross-origin",
        )


def create_app(config_object=None, store: Optional[Store] = None, llm: Optional[LLMClient] = None) -> Flask:
    """Build the API app.

    ``store`` and ``llm`` are owned by the app (``app.extensions``) and reached
    from handlers through ``get_store()`` / ``get_llm()``; pass them in to
    swap backends, e.g. in tests.
    """
    app = Flask(__name__)
    app.config.from_object(config_object or (ProdConfig if os.getenv("ENV") == "prod" else DevConfig))
    validate_required_secrets()  # raises only when ENV=prod and secrets missing
    app.url_map.strict_slashes = False  # avoid /resumes -> /resumes/ redirects

    configure_logging(app.config.get("LOG_LEVEL", "INFO"), app.config.get("LOG_DIR"))

    CORS(
        app,
        resources={r"/api/*": {"origins": app.config.get("CORS_ORIGINS") or "*"}},
        supports_credentials=False,
        allow_headers=["Authorization", "Content-Type"],
        methods=["GET", "POST", "DELETE", "OPTIONS", "PATCH"],
    )
    _init_security_headers(app)

    app.extensions["career_store"] = store if store is not None else build_store(app.config)
    app.extensions["career_llm"] = llm if llm is not None else LLMClient.from_config(app.config)

    app.register_blueprint(auth_bp, url_prefix="/api/auth")
    init_auth(app)
    app.register_blueprint(resumes_bp, url_prefix="/api/resumes")
    app.register_blueprint(interviews_bp, url_prefix="/api/interviews")
    register_error_handlers(app)

    @app.get("/api/health")
    def health():
        user_id = optional_user_id()
        return jsonify({"status": "ok", "authenticated": user_id is not None, "user_id": user_id})

    log.info("app ready (store=%s)", type(app.extensions["career_store"]).__name__)
    return app


# ------------------------------
# Entrypoint
# ------------------------------
if __name__ == "__main__":
    application = create_app()
    application.run(host="0.0.0.0", port=int(os.getenv("PORT", "8000")), debug=application.config.get("DEBUG", False))
