from functools import wraps
from flask_jwt_extended import get_jwt_identity
from flask import jsonify, request, g
from schooldesk.extensions import db
from schooldesk.models import User
from schooldesk_utils.access_control import get_allowed_school_ids


def load_current_user():
    user_id = get_jwt_identity()
    if not user_id:
        return None
    try:
        return db.session.get(User, int(user_id))
    except (TypeError, ValueError):
        return None


def role_required(*allowed_roles):
    """
    Restrict access to users with specific roles.
    Usage: @role_required("admin", "superuser")
    """
    allowed_roles = set(role.lower() for role in allowed_roles)

    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            user = load_current_user()
            if not user:
                return jsonify({"error": "Unauthorized", "message": "User not found"}), 401

            user_role_name = user.role.name.lower() if user.role else ""
            if user_role_name not in allowed_roles:
                return jsonify({"error": "Access forbidden: insufficient permissions"}), 403

            return fn(*args, **kwargs)
        return wrapper
    return decorator


def school_required():
    """
    Resolves the tenant (school) for the request into ``g.school_id``.

    The caller's own school is used unless a superuser names one through
    ``school_id`` in the query string or JSON body.
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            user = load_current_user()
            if not user:
                return jsonify({"error": "Unauthorized", "message": "User not found"}), 401

            requested = request.args.get("school_id", type=int)
            if requested is None and request.is_json:
                requested = (request.get_json(silent=True) or {}).get("school_id")

            try:
                allowed_school_ids = get_allowed_school_ids(user, requested)
            except (ValueError, PermissionError) as e:
                return jsonify({"error": "Access forbidden", "message": str(e)}), 403

            school_id = int(requested) if requested else user.school_id
            if not school_id or school_id not in allowed_school_ids:
                return jsonify({"error": "School ID not found"}), 400

            g.current_user = user
            g.school_id = school_id
            return fn(*args, **kwargs)
        return wrapper
    return decorator


def role_and_school_required(*allowed_roles):
    """
    Combined decorator for role + school access.
    Usage: @role_and_school_required("admin", "superuser")
    """
    def decorator(fn):
        @wraps(fn)
        @role_required(*allowed_roles)
        @school_required()
        def wrapper(*args, **kwargs):
            return fn(*args, **kwargs)
        return wrapper
    return decorator
