# Overview: Request decorators establishing tenant and actor context for API routes.

from functools import wraps
from flask import request, jsonify, g

from .extensions import db
from .models import Gym

GYM_HEADER = "X-Gym-Id"
USER_HEADER = "X-User-Id"


def _header_int(name: str) -> int | None:
    value = (request.headers.get(name) or "").strip()
    if not value.isdigit():
        return None
    return int(value)


def require_gym_context(f):
    """
    Require tenant and actor identity.

    Authentication happens upstream; the gateway forwards the resolved gym in
    X-Gym-Id and the acting user in X-User-Id. Sets:
    - g.gym_id: tenant scope for every query in the request
    - g.user_id: actor recorded on created/updated/deleted rows

    Returns 401 if either header is missing or malformed, or the gym is
    unknown or inactive.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        gym_id = _header_int(GYM_HEADER)
        user_id = _header_int(USER_HEADER)
        if gym_id is None or user_id is None:
            return jsonify({"error": "Tenant context required"}), 401

        gym = db.session.get(Gym, gym_id)
        if gym is None or not gym.is_active:
            return jsonify({"error": "Invalid tenant context"}), 401

        g.gym_id = gym_id
        g.user_id = user_id
        return f(*args, **kwargs)

    return decorated_function
