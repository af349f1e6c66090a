"""Attendance record model."""
from enum import Enum

from attendance_tracker import db
from attendance_tracker.models.base import BaseModel
from attendance_tracker.utils.clock import utcnow

class AttendanceStatus(Enum):
    """Attendance status enumeration."""
    PRESENT = 'present'
    ABSENT = 'absent'
    LATE = 'late'

class AttendanceRecord(BaseModel):
    """One student's presence claim for one session."""
    
    __tablename__ = 'attendance_records'
    __table_args__ = (
        db.UniqueConstraint('session_id', 'student_id', name='uq_attendance_session_student'),
    )
    
    session_id = db.Column(db.Integer, db.ForeignKey('lecture_sessions.id'), nullable=False, index=True)
    student_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    status = db.Column(db.Enum(AttendanceStatus), nullable=False, default=AttendanceStatus.PRESENT)
    timestamp = db.Column(db.DateTime, nullable=False, default=utcnow)
    device_fingerprint = db.Column(db.String(128), nullable=True)
    
    def __repr__(self):
        return f'<AttendanceRecord {self.session_id}-{self.student_id}>'
