from functools import wraps
from flask_jwt_extended import verify_jwt_in_request, get_jwt, get_jwt_identity
from flask import jsonify

from boxbox.repositories.user_repo import UserRepo


def role_required(*roles):
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            verify_jwt_in_request()
            claims = get_jwt()
            role = claims.get("role")
            if role not in roles:
                return jsonify({"success": False, "message": "Forbidden"}), 403
            return fn(*args, **kwargs)
        return wrapper
    return decorator


def current_user():
    """User row behind the JWT identity; None if the account is gone."""
    return UserRepo.get_by_id(int(get_jwt_identity()))


def json_error(message, code=400):
    return jsonify({"success": False, "message": message}), code
