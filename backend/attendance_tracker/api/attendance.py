"""Attendance API endpoints."""
from flask import Blueprint, request, g
from flask_jwt_extended import jwt_required

from attendance_tracker import limiter
from attendance_tracker.api.errors import handle_service_errors
from attendance_tracker.services.attendance_service import AttendanceService, RejectReason
from attendance_tracker.utils.decorators import student_required, lecturer_required
from attendance_tracker.utils.fingerprint import device_fingerprint
from attendance_tracker.utils.helpers import success_response, error_response

attendance_bp = Blueprint('attendance', __name__)

REJECT_STATUS = {
    RejectReason.MALFORMED_TOKEN: 400,
    RejectReason.INTEGRITY_FAILURE: 400,
    RejectReason.EXPIRED_TOKEN: 410,
    RejectReason.SESSION_NOT_FOUND: 404,
    RejectReason.SESSION_CLOSED: 409,
    RejectReason.NOT_ENROLLED: 403,
}

@attendance_bp.route('/health', methods=['GET'])
def health_check():
    """Health check endpoint."""
    return success_response(message='Attendance service is running')

@attendance_bp.route('/submit', methods=['POST'])
@jwt_required()
@student_required
@limiter.limit("20 per minute")
@handle_service_errors
def submit_attendance():
    """Submit the raw token decoded from a scanned QR image."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return error_response("Request body must be a JSON object", 400)
    
    token = data.get('token')
    if not token:
        return error_response("Missing required field: token", 400)
    
    student = g.current_user
    outcome = AttendanceService.from_app().submit_attendance(
        token, student.id, device_fingerprint(request)
    )
    
    if outcome.accepted:
        return success_response(
            data={
                'attendance_id': outcome.record.id,
                'session_id': outcome.session.id,
                'unit': outcome.session.unit.code,
                'status': outcome.record.status.value,
                'timestamp': outcome.record.timestamp.isoformat(),
                'device_usage': outcome.device_usage
            },
            message=outcome.message,
            status_code=201
        )
    
    if outcome.already_marked:
        # Soft success for the student
        return success_response(
            data={
                'already_marked': True,
                'attendance_id': outcome.record.id,
                'timestamp': outcome.record.timestamp.isoformat()
            },
            message=outcome.message
        )
    
    return error_response(outcome.message, REJECT_STATUS[outcome.reason], reason=outcome.reason.value)

@attendance_bp.route('/me', methods=['GET'])
@jwt_required()
@student_required
@handle_service_errors
def my_attendance():
    """The current student's attendance history."""
    return success_response(data=AttendanceService.student_history(g.current_user.id))

@attendance_bp.route('/session/<int:session_id>', methods=['GET'])
@jwt_required()
@lecturer_required
@handle_service_errors
def session_attendance(session_id):
    """Attendance list for one session."""
    return success_response(data=AttendanceService.session_attendance(session_id, g.current_user))

@attendance_bp.route('/<int:record_id>', methods=['PATCH'])
@jwt_required()
@lecturer_required
@handle_service_errors
def update_attendance(record_id):
    """Change a record's status (present, absent, late)."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return error_response("Request body must be a JSON object", 400)
    
    if 'status' not in data:
        return error_response("Missing required field: status", 400)
    
    record = AttendanceService.update_status(record_id, data['status'], g.current_user)
    return success_response(data=record.to_dict(), message='Attendance updated')
