"""Lecture session with rotating QR token."""
from attendance_tracker import db
from attendance_tracker.models.base import BaseModel

class LectureSession(BaseModel):
    """One time-boxed lecture meeting eligible for attendance scanning."""
    
    __tablename__ = 'lecture_sessions'
    __table_args__ = (
        db.CheckConstraint('start_time < end_time', name='ck_session_window'),
    )
    
    unit_id = db.Column(db.Integer, db.ForeignKey('units.id'), nullable=False, index=True)
    lecturer_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    start_time = db.Column(db.DateTime, nullable=False)
    end_time = db.Column(db.DateTime, nullable=False)
    ended = db.Column(db.Boolean, default=False, nullable=False)
    ended_at = db.Column(db.DateTime, nullable=True)
    
    # Current QR issuance
    qr_token = db.Column(db.String(255), unique=True, nullable=True)
    qr_expires_at = db.Column(db.DateTime, nullable=True)
    
    # Relationships
    unit = db.relationship('Unit', backref=db.backref('sessions', lazy='dynamic'))
    lecturer = db.relationship('User', foreign_keys=[lecturer_id])
    records = db.relationship('AttendanceRecord', backref='session', lazy='dynamic')
    devices = db.relationship('SessionDevice', backref='session', lazy='dynamic')
    
    def qr_needs_refresh(self, now) -> bool:
        return self.qr_token is None or self.qr_expires_at is None or now >= self.qr_expires_at
    
    def to_dict(self, exclude: list = None) -> dict:
        """Convert to dictionary."""
        result = super().to_dict(exclude=exclude)
        result['unit_code'] = self.unit.code if self.unit else None
        result['total_present'] = self.records.count()
        return result
    
    def __repr__(self) -> str:
        return f'<LectureSession {self.id} unit={self.unit_id}>'

class SessionDevice(db.Model):
    """A device fingerprint seen scanning a session."""
    
    __tablename__ = 'session_devices'
    __table_args__ = (
        db.UniqueConstraint('session_id', 'fingerprint', name='uq_session_device'),
    )
    
    id = db.Column(db.Integer, primary_key=True)
    session_id = db.Column(db.Integer, db.ForeignKey('lecture_sessions.id'), nullable=False, index=True)
    fingerprint = db.Column(db.String(128), nullable=False, index=True)
