"""Lecture session API endpoints."""
from flask import Blueprint, request, g

from flask_jwt_extended import jwt_required

from attendance_tracker import limiter
from attendance_tracker.api.errors import handle_service_errors
from attendance_tracker.services.session_service import SessionRegistry
from attendance_tracker.utils.clock import parse_iso
from attendance_tracker.utils.decorators import lecturer_required, user_required
from attendance_tracker.utils.helpers import success_response, error_response

sessions_bp = Blueprint('sessions', __name__)

def _session_payload(session, qr_image: str) -> dict:
    data = session.to_dict()
    data['qr_image'] = qr_image
    return data

@sessions_bp.route('/health', methods=['GET'])
def health_check():
    """Health check endpoint."""
    return success_response(message='Session service is running')

@sessions_bp.route('', methods=['POST'])
@jwt_required()
@lecturer_required
@limiter.limit("30 per hour")
@handle_service_errors
def create_session():
    """Create a session from explicit times or a duration starting now."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return error_response("Request body must be a JSON object", 400)
    
    if 'unit_id' not in data:
        return error_response("Missing required field: unit_id", 400)
    
    try:
        unit_id = int(data['unit_id'])
    except (TypeError, ValueError):
        return error_response("unit_id must be an integer", 400)
    
    user = g.current_user
    lecturer_id = user.id
    if user.is_admin() and 'lecturer_id' in data:
        try:
            lecturer_id = int(data['lecturer_id'])
        except (TypeError, ValueError):
            return error_response("lecturer_id must be an integer", 400)

    registry = SessionRegistry.from_app()
    
    if 'duration_minutes' in data:
        session, qr_image = registry.create_session_for_duration(
            unit_id, lecturer_id, data['duration_minutes']
        )
    else:
        for field in ('start_time', 'end_time'):
            if not data.get(field):
                return error_response(f"Missing required field: {field}", 400)
        try:
            start_time = parse_iso(data['start_time'])
            end_time = parse_iso(data['end_time'])
        except (TypeError, ValueError, AttributeError):
            return error_response("start_time and end_time must be ISO-8601 timestamps", 400)
        
        session, qr_image = registry.create_session(unit_id, lecturer_id, start_time, end_time)
    
    return success_response(
        data=_session_payload(session, qr_image),
        message='Session created successfully',
        status_code=201
    )

@sessions_bp.route('/current', methods=['GET'])
@jwt_required()
@lecturer_required
@handle_service_errors
def current_session():
    """Current scannable session with a fresh QR image.

    ``?unit_id=`` narrows to one unit; otherwise the caller's sessions.
    """
    unit_id = request.args.get('unit_id', type=int)
    user = g.current_user
    
    if unit_id is not None:
        lecturer_id = None if user.is_admin() else user.id
    else:
        lecturer_id = user.id
    
    session, qr_image = SessionRegistry.from_app().get_current_session(
        lecturer_id=lecturer_id, unit_id=unit_id
    )
    return success_response(data=_session_payload(session, qr_image))

@sessions_bp.route('/<int:session_id>/end', methods=['POST'])
@jwt_required()
@lecturer_required
@handle_service_errors
def end_session(session_id):
    """End a session; no further scans are accepted."""
    session = SessionRegistry.from_app().end_session(session_id, g.current_user.id)
    return success_response(data=session.to_dict(exclude=['qr_token']), message='Session ended')

@sessions_bp.route('/<int:session_id>/regenerate-qr', methods=['POST'])
@jwt_required()
@lecturer_required
@limiter.limit("60 per hour")
@handle_service_errors
def regenerate_qr(session_id):
    """Issue a new QR code for an open session."""
    session, qr_image = SessionRegistry.from_app().regenerate_qr(session_id, g.current_user.id)
    return success_response(data=_session_payload(session, qr_image), message='QR code regenerated')

@sessions_bp.route('/last/<int:unit_id>', methods=['GET'])
@jwt_required()
@lecturer_required
@handle_service_errors
def last_session(unit_id):
    """Most recently ended session for a unit."""
    session = SessionRegistry.from_app().get_last_session(unit_id)
    return success_response(data=session.to_dict(exclude=['qr_token']))

@sessions_bp.route('/<int:session_id>/status', methods=['GET'])
@jwt_required()
@user_required
@handle_service_errors
def session_status(session_id):
    """Whether a session is still open for scanning."""
    return success_response(data=SessionRegistry.from_app().session_status(session_id))
