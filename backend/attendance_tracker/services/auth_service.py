"""Authentication service for user login."""
import logging
import re

from flask import current_app
from flask_jwt_extended import create_access_token, create_refresh_token

from attendance_tracker import db
from attendance_tracker.models.user import User
from attendance_tracker.utils.clock import utcnow

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')

class AuthService:
    @staticmethod
    def validate_email(email: str) -> bool:
        """Validate email format."""
        return bool(email) and EMAIL_PATTERN.match(email) is not None
    
    @staticmethod
    def issue_tokens(user: User) -> dict:
        identity = str(user.id)
        return {
            "access_token": create_access_token(identity=identity, additional_claims={"role": user.role.value}),
            "refresh_token": create_refresh_token(identity=identity),
            "user": user.to_dict()
        }
    
    @staticmethod
    def login(email: str, password: str) -> tuple:
        """Authenticate user and return (tokens, error)."""
        if not email or not password:
            return None, "Email and password are required"
        
        if not AuthService.validate_email(email):
            return None, "Invalid email format"
        
        user = User.query.filter_by(email=email.lower().strip()).first()
        
        if not user:
            return None, "Invalid email or password"
        
        if user.is_locked():
            return None, "Account is temporarily locked. Try again later"
        
        if not user.check_password(password):
            user.register_failed_login(
                current_app.config.get('MAX_LOGIN_ATTEMPTS', 5),
                current_app.config.get('ACCOUNT_LOCK_MINUTES', 15)
            )
            db.session.commit()
            logger.info("Failed login for %s", user.email)
            return None, "Invalid email or password"
        
        if not user.is_active:
            return None, "Account is deactivated"
        
        # Reset failed attempts and update last login
        user.failed_login_attempts = 0
        user.locked_until = None
        user.last_login = utcnow()
        db.session.commit()
        
        return AuthService.issue_tokens(user), None
    
    @staticmethod
    def refresh_token(user_id) -> tuple:
        """Generate new access token."""
        user = db.session.get(User, int(user_id))
        if not user or not user.is_active:
            return None, "User not found or inactive"
        
        access_token = create_access_token(
            identity=str(user.id),
            additional_claims={"role": user.role.value}
        )
        
        return {
            "access_token": access_token,
            "user": user.to_dict()
        }, None
