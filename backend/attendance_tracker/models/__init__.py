"""Models package with all models."""
from .base import BaseModel
from .user import User, UserRole
from .academic import Department, Course, Unit, Enrollment
from .session import LectureSession, SessionDevice
from .attendance import AttendanceRecord, AttendanceStatus

__all__ = [
    'BaseModel', 'User', 'UserRole',
    'Department', 'Course', 'Unit', 'Enrollment',
    'LectureSession', 'SessionDevice',
    'AttendanceRecord', 'AttendanceStatus'
]
