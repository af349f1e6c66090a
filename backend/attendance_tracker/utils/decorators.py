"""Custom decorators for authorization."""
from functools import wraps

from flask import g
from flask_jwt_extended import get_jwt_identity

from attendance_tracker import db
from attendance_tracker.models.user import User
from attendance_tracker.utils.helpers import error_response

def _load_current_user():
    """Resolve the JWT identity to an active user, or None."""
    identity = get_jwt_identity()
    try:
        user = db.session.get(User, int(identity))
    except (TypeError, ValueError):
        return None
    if user is None or not user.is_active:
        return None
    return user

def role_required(check, message):
    """Build a decorator that requires a user passing ``check``.

    Must be stacked under ``@jwt_required()``. The user is exposed as
    ``g.current_user``.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            user = _load_current_user()
            if not user:
                return error_response("User not found", 404)
            
            if not check(user):
                return error_response(message, 403)
            
            g.current_user = user
            return f(*args, **kwargs)
        return decorated_function
    return decorator

user_required = role_required(lambda user: True, "Access denied")
student_required = role_required(User.is_student, "Student access required")
lecturer_required = role_required(User.is_lecturer, "Lecturer access required")
