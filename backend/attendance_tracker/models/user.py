"""User model for authentication and authorization."""
from datetime import timedelta
from enum import Enum

from werkzeug.security import generate_password_hash, check_password_hash

from attendance_tracker import db
from attendance_tracker.models.base import BaseModel
from attendance_tracker.utils.clock import utcnow

class UserRole(Enum):
    """User roles enumeration."""
    STUDENT = 'student'
    LECTURER = 'lecturer'
    DEPARTMENT_ADMIN = 'department_admin'
    SUPER_ADMIN = 'super_admin'

ADMIN_ROLES = (UserRole.DEPARTMENT_ADMIN, UserRole.SUPER_ADMIN)

class User(BaseModel):
    """User model for all system users."""
    
    __tablename__ = 'users'
    
    # Basic Information
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    first_name = db.Column(db.String(100), nullable=False)
    last_name = db.Column(db.String(100), nullable=False)
    role = db.Column(db.Enum(UserRole), nullable=False, default=UserRole.STUDENT, index=True)
    
    # Student-specific
    reg_no = db.Column(db.String(50), unique=True, nullable=True, index=True)
    year = db.Column(db.Integer, nullable=True)
    semester = db.Column(db.Integer, nullable=True)
    course_id = db.Column(db.Integer, db.ForeignKey('courses.id'), nullable=True)
    
    department_id = db.Column(db.Integer, db.ForeignKey('departments.id'), nullable=True, index=True)
    
    # Security
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    last_login = db.Column(db.DateTime, nullable=True)
    failed_login_attempts = db.Column(db.Integer, default=0, nullable=False)
    locked_until = db.Column(db.DateTime, nullable=True)
    
    # Relationships
    attendance_records = db.relationship('AttendanceRecord', backref='student', lazy='dynamic')
    
    @property
    def full_name(self) -> str:
        return f'{self.first_name} {self.last_name}'
    
    def set_password(self, password: str) -> None:
        """Set user password with hashing."""
        self.password_hash = generate_password_hash(password)
    
    def check_password(self, password: str) -> bool:
        """Check if provided password matches user's password."""
        return check_password_hash(self.password_hash, password)
    
    def is_locked(self, now=None) -> bool:
        """Check if the account is temporarily locked after failed logins."""
        return self.locked_until is not None and (now or utcnow()) < self.locked_until
    
    def register_failed_login(self, max_attempts: int, lock_minutes: int) -> None:
        """Count a failed login and lock the account once the limit is hit."""
        self.failed_login_attempts = (self.failed_login_attempts or 0) + 1
        if self.failed_login_attempts >= max_attempts:
            self.locked_until = utcnow() + timedelta(minutes=lock_minutes)
            self.failed_login_attempts = 0
    
    def is_student(self) -> bool:
        return self.role == UserRole.STUDENT
    
    def is_lecturer(self) -> bool:
        """Lecturers and admins can run sessions."""
        return self.role == UserRole.LECTURER or self.is_admin()
    
    def is_admin(self) -> bool:
        return self.role in ADMIN_ROLES
    
    def to_dict(self, exclude: list = None) -> dict:
        """Convert to dictionary excluding sensitive data."""
        default_exclude = ['password_hash', 'failed_login_attempts', 'locked_until']
        exclude = (exclude or []) + default_exclude
        result = super().to_dict(exclude=exclude)
        result['full_name'] = self.full_name
        return result
    
    def __repr__(self) -> str:
        return f'<User {self.email}>'
