"""Shared fixtures: app, client and a small faculty."""
from datetime import datetime
from types import SimpleNamespace

import pytest
from flask_jwt_extended import create_access_token

from attendance_tracker import create_app, db
from attendance_tracker.models import Department, Course, Unit, Enrollment, User, UserRole
from attendance_tracker.services.qr_service import QRTokenCodec
from attendance_tracker.services.session_service import SessionRegistry
from attendance_tracker.services.attendance_service import AttendanceService

T0 = datetime(2026, 3, 2, 9, 0, 0)

@pytest.fixture
def app():
    """Create test app."""
    app = create_app('testing')
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()

@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()

def make_user(email, role, password='password123', **extra):
    user = User(
        email=email,
        first_name=extra.pop('first_name', 'Test'),
        last_name=extra.pop('last_name', 'User'),
        role=role,
        **extra
    )
    user.set_password(password)
    return user.save()

@pytest.fixture
def faculty(app):
    """Department, course, unit SE401 with its lecturer, an enrolled and an unenrolled student."""
    department = Department(name='Computer Science', code='CS').save()
    course = Course(name='Software Engineering', code='BSE', department_id=department.id).save()
    
    lecturer = make_user('lecturer@example.com', UserRole.LECTURER, department_id=department.id)
    other_lecturer = make_user('other@example.com', UserRole.LECTURER, department_id=department.id)
    admin = make_user('admin@example.com', UserRole.SUPER_ADMIN)
    
    unit = Unit(
        name='Mobile Development', code='SE401', course_id=course.id,
        year=4, semester=1, lecturer_id=lecturer.id
    ).save()
    other_unit = Unit(
        name='Compilers', code='SE402', course_id=course.id,
        year=4, semester=1, lecturer_id=other_lecturer.id
    ).save()
    
    student = make_user('student@example.com', UserRole.STUDENT, reg_no='BSE/001', course_id=course.id)
    outsider = make_user('outsider@example.com', UserRole.STUDENT, reg_no='BSE/002', course_id=course.id)
    Enrollment(student_id=student.id, unit_id=unit.id, course_id=course.id).save()
    Enrollment(student_id=student.id, unit_id=other_unit.id, course_id=course.id).save()
    
    return SimpleNamespace(
        department=department, course=course, unit=unit, other_unit=other_unit,
        lecturer=lecturer, other_lecturer=other_lecturer, admin=admin,
        student=student, outsider=outsider
    )

@pytest.fixture
def codec(app):
    return QRTokenCodec.from_config(app.config)

@pytest.fixture
def registry(codec):
    return SessionRegistry(codec)

@pytest.fixture
def service(codec):
    return AttendanceService(codec)

@pytest.fixture
def auth_headers(app):
    """Build an Authorization header for a user."""
    def _headers(user, **extra):
        token = create_access_token(identity=str(user.id))
        headers = {'Authorization': f'Bearer {token}'}
        headers.update(extra)
        return headers
    return _headers
