# eventhive/utils/decorators.py
from functools import wraps
from flask import jsonify
from flask_jwt_extended import get_jwt, get_jwt_identity, jwt_required, verify_jwt_in_request
from eventhive.models.user import User


def current_user_id():
    identity = get_jwt_identity()
    return int(identity) if identity is not None else None


def is_admin_request():
    return bool(get_jwt().get("is_admin"))


def admin_required(view_func):
    """
    Requires a valid JWT whose user still exists and is an administrator.
    """
    @wraps(view_func)
    @jwt_required()
    def wrapper(*args, **kwargs):
        user = User.query.get(current_user_id())
        if not user or not user.is_admin:
            return jsonify({"error": "Access denied. Admins only."}), 403
        return view_func(*args, **kwargs)
    return wrapper


def optional_identity():
    """User id from a bearer token when one is present, else None."""
    verify_jwt_in_request(optional=True)
    return current_user_id()
