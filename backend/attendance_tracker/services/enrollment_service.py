"""Enrollment lookups against the user directory."""
from datetime import datetime

from attendance_tracker.models.academic import Enrollment
from attendance_tracker.utils.clock import utcnow

class EnrollmentService:
    """Answers whether a student may attend a unit."""
    
    @staticmethod
    def find_enrollment(student_id: int, unit_id: int, course_id: int, now: datetime = None) -> bool:
        """True if the student holds an enrollment for the unit/course valid at ``now``."""
        now = now or utcnow()
        enrollments = Enrollment.query.filter_by(
            student_id=student_id,
            unit_id=unit_id,
            course_id=course_id
        ).all()
        
        return any(enrollment.is_valid_at(now) for enrollment in enrollments)
