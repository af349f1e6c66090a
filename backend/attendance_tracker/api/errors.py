"""Maps service exceptions to JSON error responses."""
from functools import wraps

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from attendance_tracker import db
from attendance_tracker.services.qr_service import EncodingFailure
from attendance_tracker.services.session_service import SessionError
from attendance_tracker.utils.helpers import error_response

def handle_service_errors(f):
    """Turn known service failures into envelope responses.

    Database failures are rolled back and reported as an opaque 500.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except ValueError as e:
            db.session.rollback()
            return error_response(str(e), 400)
        except SessionError as e:
            db.session.rollback()
            return error_response(str(e), e.status_code)
        except EncodingFailure as e:
            db.session.rollback()
            current_app.logger.error("QR rendering failed: %s", e)
            return error_response("QR code could not be generated", 500, reason=e.reason)
        except SQLAlchemyError:
            db.session.rollback()
            current_app.logger.exception("Database error in %s", f.__name__)
            return error_response("Internal server error", 500)
    return decorated_function
