"""Lecture session lifecycle and QR issuance."""
import logging
import math
from datetime import datetime, timedelta
from typing import Optional, Tuple

from flask import current_app

from attendance_tracker import db
from attendance_tracker.models.academic import Unit
from attendance_tracker.models.session import LectureSession
from attendance_tracker.models.user import User
from attendance_tracker.services.qr_service import QRTokenCodec
from attendance_tracker.utils.clock import utcnow, to_unix, from_unix

logger = logging.getLogger(__name__)

class SessionError(Exception):
    """Base class for session lifecycle errors."""
    status_code = 400

class NotFoundError(SessionError):
    status_code = 404

class PermissionDeniedError(SessionError):
    status_code = 403

class ConflictError(SessionError):
    status_code = 409

def is_scannable(session: LectureSession, now: datetime) -> bool:
    """True while the session is open: not ended and start <= now <= end."""
    return (
        not session.ended
        and session.start_time <= now
        and now <= session.end_time
    )

def expire_if_elapsed(session: LectureSession, now: datetime) -> bool:
    """Mark a session ended once its window has passed. Caller commits."""
    if session.ended or now <= session.end_time:
        return False

    session.ended = True
    session.ended_at = session.end_time
    return True

class SessionRegistry:
    """Creates, looks up and ends lecture sessions."""

    def __init__(self, codec: QRTokenCodec, max_duration_minutes: int = 360):
        self.codec = codec
        self.max_duration_minutes = max_duration_minutes

    @classmethod
    def from_app(cls) -> 'SessionRegistry':
        config = current_app.config
        return cls(
            QRTokenCodec.from_config(config),
            max_duration_minutes=config.get('MAX_SESSION_DURATION_MINUTES', 360)
        )

    @staticmethod
    def get_session(session_id) -> Optional[LectureSession]:
        """Point lookup; ids that are not integers simply do not exist."""
        try:
            session_id = int(session_id)
        except (TypeError, ValueError):
            return None
        return db.session.get(LectureSession, session_id)

    def create_session(
        self,
        unit_id: int,
        lecturer_id: int,
        start_time: datetime,
        end_time: datetime,
        now: datetime = None
    ) -> Tuple[LectureSession, str]:
        """Open a session for a unit and issue its first QR code.

        Returns (session, qr_image_data).
        """
        now = now or utcnow()

        if start_time >= end_time:
            raise ValueError("start_time must be before end_time")
        if end_time - start_time > timedelta(minutes=self.max_duration_minutes):
            raise ValueError(f"Sessions cannot exceed {self.max_duration_minutes} minutes")

        unit = db.session.get(Unit, unit_id)
        if not unit:
            raise NotFoundError("Unit not found")

        lecturer = db.session.get(User, lecturer_id)
        if not lecturer or not lecturer.is_lecturer():
            raise PermissionDeniedError("Only lecturers can create sessions")
        if not lecturer.is_admin() and unit.lecturer_id != lecturer.id:
            raise PermissionDeniedError("You are not assigned to this unit")

        overlapping = LectureSession.query.filter(
            LectureSession.unit_id == unit.id,
            LectureSession.ended.is_(False),
            LectureSession.start_time < end_time,
            LectureSession.end_time > start_time
        ).first()
        if overlapping:
            raise ConflictError("An active session already exists for this unit")

        session = LectureSession(
            unit_id=unit.id,
            lecturer_id=lecturer.id,
            start_time=start_time,
            end_time=end_time
        )
        db.session.add(session)
        db.session.flush()  # Need session.id for the token

        qr_image = self._issue_qr(session, now)
        db.session.commit()

        logger.info(
            "Session %s created for unit %s by lecturer %s (%s - %s)",
            session.id, unit.code, lecturer.id, start_time.isoformat(), end_time.isoformat()
        )
        return session, qr_image

    def create_session_for_duration(
        self,
        unit_id: int,
        lecturer_id: int,
        duration_minutes,
        now: datetime = None
    ) -> Tuple[LectureSession, str]:
        """Open a session starting now and lasting ``duration_minutes``."""
        if isinstance(duration_minutes, bool) or not isinstance(duration_minutes, (int, float)) \
                or duration_minutes <= 0:
            raise ValueError("duration_minutes must be a positive number")
        if duration_minutes > self.max_duration_minutes or not math.isfinite(duration_minutes):
            raise ValueError(f"Sessions cannot exceed {self.max_duration_minutes} minutes")

        now = now or utcnow()
        return self.create_session(
            unit_id, lecturer_id,
            start_time=now,
            end_time=now + timedelta(minutes=duration_minutes),
            now=now
        )

    def get_current_session(
        self,
        lecturer_id: int = None,
        unit_id: int = None,
        now: datetime = None
    ) -> Tuple[LectureSession, str]:
        """Most recent scannable session for a lecturer or unit.

        Elapsed sessions are marked ended on the way, and the QR token is
        reissued once its validity has run out.
        """
        if lecturer_id is None and unit_id is None:
            raise ValueError("lecturer_id or unit_id is required")

        now = now or utcnow()

        query = LectureSession.query.filter(LectureSession.ended.is_(False))
        if lecturer_id is not None:
            query = query.filter(LectureSession.lecturer_id == lecturer_id)
        if unit_id is not None:
            query = query.filter(LectureSession.unit_id == unit_id)

        expired = 0
        current = None
        for session in query.order_by(LectureSession.start_time.desc()).all():
            if expire_if_elapsed(session, now):
                expired += 1
            elif current is None and is_scannable(session, now):
                current = session

        if expired:
            logger.info("Marked %d elapsed session(s) as ended", expired)

        if current is None:
            db.session.commit()
            raise NotFoundError("No current session found")

        if current.qr_needs_refresh(now):
            qr_image = self._issue_qr(current, now)
        else:
            qr_image = self.codec.render_image(current.qr_token)

        db.session.commit()
        return current, qr_image

    def end_session(self, session_id, lecturer_id: int, now: datetime = None) -> LectureSession:
        """Explicit lecturer action closing a session."""
        now = now or utcnow()
        session = self._get_owned_session(session_id, lecturer_id)

        if session.ended:
            raise ConflictError("Session has already ended")

        session.ended = True
        session.ended_at = min(now, session.end_time)
        db.session.commit()

        logger.info("Session %s ended by user %s", session.id, lecturer_id)
        return session

    def regenerate_qr(self, session_id, lecturer_id: int, now: datetime = None) -> Tuple[LectureSession, str]:
        """Issue a new QR token for an open session."""
        now = now or utcnow()
        session = self._get_owned_session(session_id, lecturer_id)

        if not is_scannable(session, now):
            raise ConflictError("Session is not active")

        qr_image = self._issue_qr(session, now)
        db.session.commit()
        return session, qr_image

    def get_last_session(self, unit_id: int, now: datetime = None) -> LectureSession:
        """Most recently ended session for a unit."""
        now = now or utcnow()

        for session in LectureSession.query.filter_by(unit_id=unit_id, ended=False).all():
            expire_if_elapsed(session, now)
        db.session.commit()

        session = LectureSession.query.filter_by(unit_id=unit_id, ended=True) \
            .order_by(LectureSession.end_time.desc()).first()
        if not session:
            raise NotFoundError("No ended session found for this unit")
        return session

    def session_status(self, session_id, now: datetime = None) -> dict:
        """Lifecycle summary used by clients polling a session."""
        now = now or utcnow()
        session = self.get_session(session_id)
        if not session:
            raise NotFoundError("Session not found")

        if expire_if_elapsed(session, now):
            db.session.commit()

        return {
            'session_id': session.id,
            'unit_id': session.unit_id,
            'ended': session.ended,
            'scannable': is_scannable(session, now),
            'start_time': session.start_time.isoformat(),
            'end_time': session.end_time.isoformat(),
            'qr_expires_at': session.qr_expires_at.isoformat() if session.qr_expires_at else None
        }

    def _issue_qr(self, session: LectureSession, now: datetime) -> str:
        encoded = self.codec.encode(session.id, now=to_unix(now))
        session.qr_token = encoded.token
        session.qr_expires_at = from_unix(encoded.expires_at)
        return encoded.qr_image_data

    def _get_owned_session(self, session_id, user_id: int) -> LectureSession:
        session = self.get_session(session_id)
        if not session:
            raise NotFoundError("Session not found")

        user = db.session.get(User, user_id)
        if not user or not (user.is_admin() or session.lecturer_id == user.id):
            raise PermissionDeniedError("You can only manage your own sessions")
        return session
