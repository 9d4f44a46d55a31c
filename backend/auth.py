# auth.py
from __future__ import annotations
import logging
from typing import Optional

from flask import Blueprint, jsonify, request
from flask_jwt_extended import (
    JWTManager, create_access_token, get_jwt_identity, jwt_required, verify_jwt_in_request
)
from flask_jwt_extended.exceptions import JWTExtendedException
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from jwt.exceptions import PyJWTError
from passlib.hash import pbkdf2_sha256

from errors import DuplicateRecordError, NotFound, ServiceError
from schemas import Credentials
from storage import get_store

log = logging.getLogger(__name__)

auth_bp = Blueprint("auth", __name__)

# rate limiter; will be bound to app in init_auth()
limiter = Limiter(key_func=get_remote_address, default_limits=["200/hour"])
jwt = JWTManager()

UNAUTHORIZED = {"error": "Unauthorized"}


class InvalidCredentials(ServiceError):
    status_code = 401
    message = "Invalid credentials"


def hash_password(pw: str) -> str:
    return pbkdf2_sha256.hash(pw)


def verify_password(pw: str, pw_hash: str) -> bool:
    try:
        return pbkdf2_sha256.verify(pw, pw_hash)
    except (ValueError, TypeError):
        return False


def issue_token(user_id: str) -> str:
    # expiry comes from JWT_ACCESS_TOKEN_EXPIRES (7 days)
    return create_access_token(identity=user_id)


def current_user_id() -> str:
    return get_jwt_identity()


def optional_user_id() -> Optional[str]:
    """Return the caller's user id if a valid bearer token is present.

    Never rejects: a missing, malformed or expired token just yields None.
    """
    try:
        verify_jwt_in_request(optional=True)
    except (JWTExtendedException, PyJWTError) as e:
        log.info("optional auth ignored bad token: %s", e)
        return None
    return get_jwt_identity()


def _session_payload(user) -> dict:
    return {"id": user["id"], "username": user["username"], "token": issue_token(user["id"])}


@auth_bp.post("/register")
@limiter.limit("5/minute")
def register():
    """
    Request: { "username": "...", "password": "..." }
    Response: { "id": "...", "username": "...", "token": "..." }
    """
    data = Credentials.model_validate(request.get_json(silent=True) or {})
    store = get_store()

    if store.get_user_by_username(data.username):
        return jsonify({"error": "Username already exists"}), 400
    try:
        user = store.create_user(data.username, hash_password(data.password))
    except DuplicateRecordError:
        # lost a race with a concurrent registration
        return jsonify({"error": "Username already exists"}), 400

    log.info("user %s registered", user["id"])
    return jsonify(_session_payload(user)), 201


@auth_bp.post("/login")
@limiter.limit("10/minute")
def login():
    data = Credentials.model_validate(request.get_json(silent=True) or {})
    user = get_store().get_user_by_username(data.username)
    if not user or not verify_password(data.password, user.get("password_hash", "")):
        log.info("failed login for username=%r", data.username)
        raise InvalidCredentials()
    return jsonify(_session_payload(user))


@auth_bp.get("/me")
@jwt_required()
def me():
    user = get_store().get_user(current_user_id())
    if not user:
        raise NotFound("User not found")
    return jsonify({"id": user["id"], "username": user["username"]})


def _init_jwt_callbacks():
    # missing and bad tokens are told apart in the log only
    @jwt.unauthorized_loader
    def _missing_token(reason: str):
        log.info("auth rejected: missing token (%s)", reason)
        return jsonify(UNAUTHORIZED), 401

    @jwt.invalid_token_loader
    def _invalid_token(reason: str):
        log.info("auth rejected: invalid token (%s)", reason)
        return jsonify(UNAUTHORIZED), 401

    @jwt.expired_token_loader
    def _expired_token(jwt_header, jwt_payload):
        log.info("auth rejected: expired token for sub=%s", jwt_payload.get("sub"))
        return jsonify(UNAUTHORIZED), 401


_init_jwt_callbacks()


def init_auth(app):
    """
    Call once from the app factory:
        app.register_blueprint(auth_bp, url_prefix="/api/auth")
        init_auth(app)
    """
    jwt.init_app(app)
    limiter.init_app(app)
