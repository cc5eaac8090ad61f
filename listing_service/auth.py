"""Password hashing, token issuing and the bearer-token gate."""

import datetime
from functools import wraps

import jwt
from flask import current_app, g, jsonify, request
from werkzeug.security import generate_password_hash, check_password_hash

from listing_service.logger import logger

AUTH_FAILED = "Authentication failed."


def hash_password(password):
    return generate_password_hash(password)


def verify_password(hashed_password, password):
    return check_password_hash(hashed_password, password)


def create_token(user_id):
    now = datetime.datetime.now(datetime.timezone.utc)
    payload = {
        "user_id": user_id,
        "userId": user_id,
        "iat": now,
        "exp": now + datetime.timedelta(hours=current_app.config["JWT_EXPIRES_HOURS"]),
    }
    token = jwt.encode(payload, current_app.config["SECRET_KEY"], algorithm=current_app.config["JWT_ALGORITHM"])
    if isinstance(token, bytes):
        token = token.decode('utf-8')
    return token


def decode_token(token):
    """
    Verify signature and expiry and return the claims.

    Raises jwt.InvalidTokenError (or a subclass such as
    ExpiredSignatureError) when the token cannot be trusted.
    """
    return jwt.decode(
        token,
        current_app.config["SECRET_KEY"],
        algorithms=[current_app.config["JWT_ALGORITHM"]],
        options={"require": ["exp", "user_id"]},
    )


def _bearer_token():
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer":
        return None
    return token.strip() or None


def require_auth(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        token = _bearer_token()
        if not token:
            logger.warning("Missing bearer token", extra={'endpoint': request.path, 'status_code': 401})
            return jsonify({"error": AUTH_FAILED}), 401

        try:
            g.current_user = decode_token(token)
        except jwt.InvalidTokenError as e:
            logger.warning("Rejected bearer token", extra={'endpoint': request.path, 'status_code': 401, 'error': str(e)})
            return jsonify({"error": AUTH_FAILED}), 401

        return view(*args, **kwargs)
    return wrapper
