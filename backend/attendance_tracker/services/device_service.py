"""Device fingerprint telemetry for attendance abuse review."""
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from attendance_tracker import db
from attendance_tracker.models.session import SessionDevice

class DeviceThrottle:
    """Records which devices scanned which sessions.

    Advisory only: nothing here rejects a scan.
    """
    
    @staticmethod
    def note_device_usage(session_id: int, fingerprint: str) -> int:
        """Add the fingerprint to the session's device set.

        Returns the number of distinct sessions this fingerprint has been seen
        on, counting this one, so a first-time device reports 1.
        """
        if not fingerprint:
            return 0
        
        seen = SessionDevice.query.filter_by(session_id=session_id, fingerprint=fingerprint).first()
        if not seen:
            db.session.add(SessionDevice(session_id=session_id, fingerprint=fingerprint))
            try:
                db.session.commit()
            except IntegrityError:
                # Another request added the same pair first
                db.session.rollback()
        
        return DeviceThrottle.usage_count(fingerprint)
    
    @staticmethod
    def usage_count(fingerprint: str) -> int:
        return db.session.query(func.count(func.distinct(SessionDevice.session_id))).filter(
            SessionDevice.fingerprint == fingerprint
        ).scalar() or 0
    
    @staticmethod
    def session_fingerprints(session_id: int) -> list:
        rows = SessionDevice.query.filter_by(session_id=session_id).order_by(SessionDevice.id).all()
        return [row.fingerprint for row in rows]
