from __future__ import annotations

from functools import wraps

from flask import current_app, g, request

from myka.errors import ValidationError
from myka.security.jwt_utils import get_current_user


def get_runtime():
    return current_app.extensions["myka"]


def login_required(view):
    """Resolve the Bearer token into ``g.user_id`` or fail with 401."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        payload = get_current_user(request.headers.get("Authorization", ""))
        g.user_id = str(payload["sub"])
        return view(*args, **kwargs)

    return wrapper


def json_body(required: bool = True) -> dict:
    data = request.get_json(silent=True)
    if data is None:
        if required:
            raise ValidationError("Request body must be a JSON object")
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data
