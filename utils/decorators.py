from __future__ import annotations
from functools import wraps
from flask import request, g, abort, current_app
from utils.security import decode_access_token, TokenError


def jwt_required():
    """Require a valid Bearer access token and load g.current_user.

    The user store is taken from app.extensions; soft-deleted or
    vanished users are rejected like a bad token.
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            auth = request.headers.get("Authorization", "")
            if not auth.startswith("Bearer "):
                abort(401, description="Missing or invalid Authorization header")
            token = auth.split(" ", 1)[1].strip()
            try:
                decoded = decode_access_token(
                    token,
                    current_app.config["JWT_SECRET"],
                    current_app.config["JWT_ALGORITHM"],
                    issuer=current_app.config.get("JWT_ISSUER") or None,
                )
            except TokenError as e:
                abort(401, description=str(e))

            users = current_app.extensions["user_store"]
            user = users.get_by_id(decoded["user_id"])
            if not user:
                abort(401, description="User not found")
            g.current_user = user
            return fn(*args, **kwargs)

        return wrapper

    return decorator
