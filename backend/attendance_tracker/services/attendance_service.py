"""QR attendance submission and attendance queries."""
import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import List, Optional

from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from attendance_tracker import db
from attendance_tracker.models.attendance import AttendanceRecord, AttendanceStatus
from attendance_tracker.models.session import LectureSession
from attendance_tracker.models.user import User
from attendance_tracker.services.device_service import DeviceThrottle
from attendance_tracker.services.enrollment_service import EnrollmentService
from attendance_tracker.services.qr_service import QRTokenCodec, TokenError
from attendance_tracker.services.session_service import (
    SessionRegistry, NotFoundError, PermissionDeniedError, is_scannable
)
from attendance_tracker.utils.clock import utcnow, to_unix

logger = logging.getLogger(__name__)

class RejectReason(Enum):
    """Why a submission did not produce a new record."""
    MALFORMED_TOKEN = 'malformed_token'
    INTEGRITY_FAILURE = 'integrity_failure'
    EXPIRED_TOKEN = 'expired_token'
    SESSION_NOT_FOUND = 'session_not_found'
    SESSION_CLOSED = 'session_closed'
    NOT_ENROLLED = 'not_enrolled'
    ALREADY_MARKED = 'already_marked'

REJECT_MESSAGES = {
    RejectReason.SESSION_NOT_FOUND: "Attendance session not found",
    RejectReason.SESSION_CLOSED: "This session is not open for attendance",
    RejectReason.NOT_ENROLLED: "You are not enrolled in this unit",
    RejectReason.ALREADY_MARKED: "You are already marked present for this session",
}

@dataclass
class LedgerResult:
    created: bool
    record: AttendanceRecord

@dataclass
class AttendanceOutcome:
    """Terminal state of one submission."""
    accepted: bool
    reason: Optional[RejectReason] = None
    message: str = ''
    record: Optional[AttendanceRecord] = None
    session: Optional[LectureSession] = None
    device_usage: Optional[int] = None

    @classmethod
    def rejected(cls, reason: RejectReason, message: str = None, **kwargs) -> 'AttendanceOutcome':
        return cls(accepted=False, reason=reason, message=message or REJECT_MESSAGES[reason], **kwargs)

    @property
    def already_marked(self) -> bool:
        return self.reason == RejectReason.ALREADY_MARKED

class AttendanceLedger:
    """Owns attendance records; one per (session, student)."""

    @staticmethod
    def record_if_absent(
        session_id: int,
        student_id: int,
        device_fingerprint: str = None,
        now: datetime = None
    ) -> LedgerResult:
        """Insert a PRESENT record unless one exists.

        The unique (session, student) constraint decides races; the loser
        gets the winner's record back with ``created=False``.
        """
        record = AttendanceRecord(
            session_id=session_id,
            student_id=student_id,
            status=AttendanceStatus.PRESENT,
            timestamp=now or utcnow(),
            device_fingerprint=device_fingerprint
        )
        db.session.add(record)

        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            existing = AttendanceRecord.query.filter_by(
                session_id=session_id,
                student_id=student_id
            ).first()
            if existing is None:
                raise
            return LedgerResult(created=False, record=existing)

        return LedgerResult(created=True, record=record)

    @staticmethod
    def count_for_session(session_id: int) -> int:
        return AttendanceRecord.query.filter_by(session_id=session_id).count()

class AttendanceService:
    """Runs the scan protocol: decode, session, window, enrollment, record, device."""

    def __init__(self, codec: QRTokenCodec):
        self.codec = codec

    @classmethod
    def from_app(cls) -> 'AttendanceService':
        return cls(QRTokenCodec.from_config(current_app.config))

    def submit_attendance(
        self,
        raw_token: str,
        student_id: int,
        device_fingerprint: str = None,
        now: datetime = None
    ) -> AttendanceOutcome:
        """Process one scan. Never retried, never resumed."""
        now = now or utcnow()

        try:
            payload = self.codec.decode(raw_token, now=to_unix(now))
        except TokenError as e:
            logger.info("Rejected token from student %s: %s", student_id, e.reason)
            return AttendanceOutcome.rejected(RejectReason(e.reason), str(e))

        session = SessionRegistry.get_session(payload.session_id)
        if session is None:
            logger.info("Student %s scanned unknown session %s", student_id, payload.session_id)
            return AttendanceOutcome.rejected(RejectReason.SESSION_NOT_FOUND)

        if not is_scannable(session, now):
            return AttendanceOutcome.rejected(RejectReason.SESSION_CLOSED, session=session)

        unit = session.unit
        if not EnrollmentService.find_enrollment(student_id, unit.id, unit.course_id, now=now):
            logger.info("Student %s not enrolled in unit %s", student_id, unit.code)
            return AttendanceOutcome.rejected(RejectReason.NOT_ENROLLED, session=session)

        result = AttendanceLedger.record_if_absent(session.id, student_id, device_fingerprint, now=now)
        if not result.created:
            return AttendanceOutcome.rejected(
                RejectReason.ALREADY_MARKED, record=result.record, session=session
            )

        device_usage = self._note_device(session.id, device_fingerprint)

        logger.info("Attendance recorded: session %s student %s", session.id, student_id)
        return AttendanceOutcome(
            accepted=True,
            message="Attendance marked successfully",
            record=result.record,
            session=session,
            device_usage=device_usage
        )

    @staticmethod
    def _note_device(session_id: int, fingerprint: str) -> Optional[int]:
        """Best effort; a failure here never undoes the attendance record."""
        try:
            return DeviceThrottle.note_device_usage(session_id, fingerprint)
        except SQLAlchemyError:
            db.session.rollback()
            logger.warning("Device telemetry failed for session %s", session_id, exc_info=True)
            return None

    @staticmethod
    def student_history(student_id: int) -> List[dict]:
        """A student's own records, newest first."""
        records = AttendanceRecord.query.filter_by(student_id=student_id) \
            .order_by(AttendanceRecord.timestamp.desc()).all()

        history = []
        for record in records:
            item = record.to_dict(exclude=['device_fingerprint'])
            item['unit_code'] = record.session.unit.code
            item['unit_name'] = record.session.unit.name
            history.append(item)
        return history

    @staticmethod
    def session_attendance(session_id, user: User) -> dict:
        """Records for a session, visible to its lecturer and admins."""
        session = SessionRegistry.get_session(session_id)
        if not session:
            raise NotFoundError("Session not found")
        AttendanceService._check_can_manage(session, user)

        records = session.records.order_by(AttendanceRecord.timestamp).all()
        return {
            'session': session.to_dict(exclude=['qr_token']),
            'records': [
                dict(record.to_dict(), student_name=record.student.full_name, reg_no=record.student.reg_no)
                for record in records
            ],
            'distinct_devices': len(DeviceThrottle.session_fingerprints(session.id))
        }

    @staticmethod
    def update_status(record_id: int, status: str, user: User) -> AttendanceRecord:
        """Lecturer-facing status toggle, outside the scan path."""
        try:
            new_status = AttendanceStatus(status)
        except ValueError:
            allowed = ', '.join(s.value for s in AttendanceStatus)
            raise ValueError(f"Status must be one of: {allowed}")

        record = db.session.get(AttendanceRecord, record_id)
        if not record:
            raise NotFoundError("Attendance record not found")
        AttendanceService._check_can_manage(record.session, user)

        record.update(status=new_status)
        logger.info("Record %s set to %s by user %s", record.id, new_status.value, user.id)
        return record

    @staticmethod
    def _check_can_manage(session: LectureSession, user: User) -> None:
        if not (user.is_admin() or session.lecturer_id == user.id):
            raise PermissionDeniedError("You can only view your own sessions")
