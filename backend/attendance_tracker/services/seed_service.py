"""Demo data for local development."""
from attendance_tracker import db
from attendance_tracker.models import Department, Course, Unit, Enrollment, User, UserRole

class SeedService:
    """Seeds a small faculty: one unit, one lecturer, two students."""
    
    DEMO_PASSWORD = 'password123'
    
    @staticmethod
    def _user(email, first_name, last_name, role, **extra) -> User:
        user = User.query.filter_by(email=email).first()
        if user:
            return user
        user = User(email=email, first_name=first_name, last_name=last_name, role=role, **extra)
        user.set_password(SeedService.DEMO_PASSWORD)
        db.session.add(user)
        db.session.flush()
        return user
    
    @staticmethod
    def seed_demo() -> list:
        """Create demo records if missing; returns (role, email, password) tuples."""
        department = Department.query.filter_by(code='CS').first()
        if not department:
            department = Department(name='Computer Science', code='CS')
            db.session.add(department)
            db.session.flush()
        
        course = Course.query.filter_by(code='BSE').first()
        if not course:
            course = Course(name='BSc Software Engineering', code='BSE', department_id=department.id)
            db.session.add(course)
            db.session.flush()
        
        lecturer = SeedService._user(
            'lecturer@university.edu', 'Grace', 'Hopper', UserRole.LECTURER,
            department_id=department.id
        )
        
        unit = Unit.query.filter_by(code='SE401').first()
        if not unit:
            unit = Unit(
                name='Mobile Application Development', code='SE401',
                course_id=course.id, year=4, semester=1, lecturer_id=lecturer.id
            )
            db.session.add(unit)
            db.session.flush()
        
        enrolled = SeedService._user(
            'student@university.edu', 'Alan', 'Turing', UserRole.STUDENT,
            reg_no='BSE/2021/001', year=4, semester=1,
            course_id=course.id, department_id=department.id
        )
        SeedService._user(
            'visitor@university.edu', 'Ada', 'Lovelace', UserRole.STUDENT,
            reg_no='BSE/2021/002', year=4, semester=1,
            course_id=course.id, department_id=department.id
        )
        
        if not Enrollment.query.filter_by(student_id=enrolled.id, unit_id=unit.id).first():
            db.session.add(Enrollment(student_id=enrolled.id, unit_id=unit.id, course_id=course.id))
        
        db.session.commit()
        
        return [
            ('lecturer', lecturer.email, SeedService.DEMO_PASSWORD),
            ('student (enrolled)', enrolled.email, SeedService.DEMO_PASSWORD),
            ('student (not enrolled)', 'visitor@university.edu', SeedService.DEMO_PASSWORD),
        ]
