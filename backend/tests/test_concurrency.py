"""Concurrent submissions against a file-backed database."""
from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta

import pytest

from attendance_tracker import create_app, db
from attendance_tracker.models import AttendanceRecord
from attendance_tracker.services.attendance_service import RejectReason
from config.testing import TestingConfig
from tests.conftest import T0

WORKERS = 8

@pytest.fixture
def app(tmp_path, monkeypatch):
    """Test app on a SQLite file so every thread gets its own connection."""
    monkeypatch.setattr(TestingConfig, 'SQLALCHEMY_DATABASE_URI', f"sqlite:///{tmp_path / 'attendance.db'}")
    app = create_app('testing')
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()

def test_concurrent_submissions_record_once(app, registry, service, faculty):
    session, _ = registry.create_session(
        faculty.unit.id, faculty.lecturer.id, T0, T0 + timedelta(hours=1), now=T0
    )
    session_id, token, student_id = session.id, session.qr_token, faculty.student.id

    def submit(i):
        with app.app_context():
            outcome = service.submit_attendance(
                token, student_id, f'device-{i}', now=T0 + timedelta(seconds=10)
            )
            return outcome.accepted, outcome.reason

    with ThreadPoolExecutor(max_workers=WORKERS) as pool:
        results = list(pool.map(submit, range(WORKERS)))

    assert sum(accepted for accepted, _ in results) == 1
    assert [reason for accepted, reason in results if not accepted] == [RejectReason.ALREADY_MARKED] * (WORKERS - 1)

    db.session.expire_all()
    assert AttendanceRecord.query.filter_by(session_id=session_id, student_id=student_id).count() == 1
