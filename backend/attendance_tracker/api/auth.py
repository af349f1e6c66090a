"""Authentication API endpoints."""
from flask import Blueprint, request, current_app, g
from flask_jwt_extended import jwt_required, get_jwt_identity
from sqlalchemy.exc import SQLAlchemyError

from attendance_tracker import db, limiter
from attendance_tracker.services.auth_service import AuthService
from attendance_tracker.utils.decorators import user_required
from attendance_tracker.utils.helpers import success_response, error_response

auth_bp = Blueprint("auth", __name__)

@auth_bp.route("/health", methods=["GET"])
def health_check():
    """Health check endpoint."""
    return success_response(message="Auth service is running")

@auth_bp.route("/login", methods=["POST"])
@limiter.limit("5 per minute")
def login():
    """Email/password login for every role."""
    data = request.get_json(silent=True)
    
    if not isinstance(data, dict):
        return error_response("Request body must be a JSON object", 400)
    
    email = data.get("email") or ""
    password = data.get("password") or ""
    
    if not isinstance(email, str) or not isinstance(password, str):
        return error_response("Email and password must be strings", 400)
    
    email = email.strip()
    if not email or not password:
        return error_response("Email and password are required", 400)
    
    try:
        result, error = AuthService.login(email, password)
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Login failed")
        return error_response("Internal server error", 500)
    
    if error:
        return error_response(error, 401)
    
    return success_response(data=result, message="Login successful")

@auth_bp.route("/refresh", methods=["POST"])
@jwt_required(refresh=True)
def refresh():
    """Exchange a refresh token for a new access token."""
    result, error = AuthService.refresh_token(get_jwt_identity())
    
    if error:
        return error_response(error, 401)
    
    return success_response(data=result, message="Token refreshed")

@auth_bp.route("/me", methods=["GET"])
@jwt_required()
@user_required
def me():
    """Current user profile."""
    return success_response(data=g.current_user.to_dict())
