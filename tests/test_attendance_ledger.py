"""Test the attendance ledger and the full marking flow."""
import threading
from datetime import date, datetime, time, timedelta

import pytest

from qr_attendance import create_app, db
from qr_attendance.models.attendance import AttendanceMethod, AttendanceRecord, AttendanceStatus
from qr_attendance.models.session_ticket import SessionTicket
from qr_attendance.models.user import User, UserRole
from qr_attendance.services.admission_gate import AdmissionCandidate
from qr_attendance.services.attendance_ledger import AttendanceLedger, classify_status
from qr_attendance.services.attendance_service import AttendanceService
from qr_attendance.services.exceptions import (
    BiometricNotRegistered, DuplicateAdmission, InvalidTicket, NotFound, NotStarted, ValidationFailed
)
from qr_attendance.services.policy import AttendancePolicy
from qr_attendance.services.ticket_service import TicketService

from conftest import unit_vector

SESSION_DATE = date(2031, 3, 10)
START = datetime.combine(SESSION_DATE, time(9, 0))
END = datetime.combine(SESSION_DATE, time(10, 0))
LATE_AFTER = timedelta(minutes=15)


def at(hour, minute, second=0):
    return datetime.combine(SESSION_DATE, time(hour, minute, second))


@pytest.fixture
def ticket(app, teacher):
    return TicketService().create(teacher.id, 'Algorithms', START, END, now=at(7, 0))


@pytest.fixture
def service(app):
    return AttendanceService(AttendancePolicy())


def test_classify_status_boundary():
    assert classify_status(START + LATE_AFTER, START, LATE_AFTER) is AttendanceStatus.PRESENT
    assert classify_status(START + LATE_AFTER + timedelta(seconds=1), START, LATE_AFTER) is AttendanceStatus.LATE
    assert classify_status(START, START, LATE_AFTER) is AttendanceStatus.PRESENT


def test_schedule_scenario(service, ticket, student, enrolled_student, other_teacher):
    """09:00-10:00 session expiring at 10:30."""
    assert ticket.expires_at == at(10, 30)

    with pytest.raises(NotStarted):
        service.mark(student.id, ticket.id, ticket.token, now=at(8, 59))

    on_time = service.mark(student.id, ticket.id, ticket.token, now=at(9, 5))
    assert on_time.status is AttendanceStatus.PRESENT
    assert on_time.method is AttendanceMethod.TOKEN_ONLY
    assert on_time.verified is True

    late = service.mark(enrolled_student.id, ticket.id, ticket.token, now=at(9, 20))
    assert late.status is AttendanceStatus.LATE

    with pytest.raises(InvalidTicket):
        service.mark(other_teacher.id, ticket.id, ticket.token, now=at(10, 31))

    db.session.refresh(ticket)
    assert ticket.accepted_count == 2


def test_second_attempt_is_duplicate(service, ticket, student):
    first = service.mark(student.id, ticket.id, ticket.token, now=at(9, 1))

    with pytest.raises(DuplicateAdmission) as excinfo:
        service.mark(student.id, ticket.id, ticket.token, now=at(9, 2))

    assert excinfo.value.existing_record.id == first.id
    db.session.refresh(ticket)
    assert ticket.accepted_count == 1


def test_rotated_token_invalidates_old_one(service, ticket, student):
    old_token = ticket.token
    TicketService().regenerate_token(ticket)

    with pytest.raises(InvalidTicket):
        service.mark(student.id, ticket.id, old_token, now=at(9, 1))

    assert service.mark(student.id, ticket.id, ticket.token, now=at(9, 1)).id is not None


def test_biometric_marking(service, ticket, student, enrolled_student):
    with pytest.raises(BiometricNotRegistered):
        service.mark(student.id, ticket.id, ticket.token, AttendanceMethod.BIOMETRIC, unit_vector(), now=at(9, 1))

    record = service.mark(
        enrolled_student.id, ticket.id, ticket.token,
        AttendanceMethod.BIOMETRIC, unit_vector(), now=at(9, 1)
    )
    assert record.method is AttendanceMethod.BIOMETRIC
    assert record.biometric_score == pytest.approx(1.0)
    assert record.verified is True


def test_storage_rejects_duplicate_insert(app, ticket, student):
    """A candidate that slipped past the gate still cannot be stored twice."""
    ledger = AttendanceLedger()
    candidate = AdmissionCandidate(
        subject_id=student.id,
        ticket_id=ticket.id,
        method=AttendanceMethod.TOKEN_ONLY,
        marked_at=at(9, 3),
        verified=True
    )

    ledger.admit(candidate, ticket)
    with pytest.raises(DuplicateAdmission):
        ledger.admit(candidate, ticket)

    assert AttendanceRecord.query.filter_by(ticket_id=ticket.id).count() == 1
    db.session.refresh(ticket)
    assert ticket.accepted_count == 1


def test_revise_record(service, ticket, student):
    record = service.mark(student.id, ticket.id, ticket.token, now=at(9, 1))
    ledger = AttendanceLedger()

    revised = ledger.revise(record.id, status='absent', remarks=' left early ')

    assert revised.status is AttendanceStatus.ABSENT
    assert revised.remarks == 'left early'
    assert revised.marked_at == at(9, 1)

    with pytest.raises(ValidationFailed):
        ledger.revise(record.id, status='excused')

    with pytest.raises(NotFound):
        ledger.revise(99999, status='present')


def test_remove_record_decrements_count(service, ticket, student):
    record = service.mark(student.id, ticket.id, ticket.token, now=at(9, 1))
    ledger = AttendanceLedger()

    ledger.remove(record.id)

    assert AttendanceRecord.get_by_id(record.id) is None
    db.session.refresh(ticket)
    assert ticket.accepted_count == 0

    with pytest.raises(NotFound):
        ledger.remove(record.id)


def test_capacity_is_advisory(app, teacher, student, enrolled_student):
    ticket = TicketService().create(teacher.id, 'Seminar', START, END, capacity=1, now=at(7, 0))
    service = AttendanceService()

    service.mark(student.id, ticket.id, ticket.token, now=at(9, 1))
    service.mark(enrolled_student.id, ticket.id, ticket.token, now=at(9, 2))

    db.session.refresh(ticket)
    assert ticket.accepted_count == 2


def test_summarize(service, ticket, student, enrolled_student):
    service.mark(student.id, ticket.id, ticket.token, now=at(9, 1))
    service.mark(
        enrolled_student.id, ticket.id, ticket.token,
        AttendanceMethod.BIOMETRIC, unit_vector(), now=at(9, 30)
    )

    stats = AttendanceLedger.summarize(AttendanceLedger.records_for(ticket_id=ticket.id))

    assert stats['total'] == 2
    assert stats['present'] == 1
    assert stats['late'] == 1
    assert stats['token_only'] == 1
    assert stats['biometric'] == 1
    assert stats['verified'] == 2


@pytest.fixture
def file_app(tmp_path):
    """App on a file database so threads get separate connections."""
    app = create_app('testing', {
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'race.db'}"
    })
    with app.app_context():
        db.create_all()
        teacher = User(email='race-teacher@example.com', name='Race Teacher', role=UserRole.TEACHER)
        teacher.set_password('password123')
        student = User(email='race-student@example.com', name='Race Student', role=UserRole.STUDENT)
        student.set_password('password123')
        db.session.add_all([teacher, student])
        db.session.commit()
        ticket = TicketService().create(teacher.id, 'Race', START, END, now=at(7, 0))
        ids = (student.id, ticket.id, ticket.token)
        db.session.remove()

    yield app, ids

    with app.app_context():
        db.drop_all()
        db.engine.dispose()


@pytest.mark.parametrize('attempts', [2, 4])
def test_concurrent_marks_admit_exactly_once(file_app, attempts):
    app, (student_id, ticket_id, token) = file_app
    barrier = threading.Barrier(attempts)
    outcomes = []
    lock = threading.Lock()

    def present():
        with app.app_context():
            service = AttendanceService()
            barrier.wait()
            try:
                service.mark(student_id, ticket_id, token, now=at(9, 4))
                outcome = 'accepted'
            except DuplicateAdmission:
                outcome = 'duplicate'
            finally:
                db.session.remove()
            with lock:
                outcomes.append(outcome)

    threads = [threading.Thread(target=present) for _ in range(attempts)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert outcomes.count('accepted') == 1
    assert outcomes.count('duplicate') == attempts - 1

    with app.app_context():
        assert AttendanceRecord.query.filter_by(subject_id=student_id, ticket_id=ticket_id).count() == 1
        assert SessionTicket.get_by_id(ticket_id).accepted_count == 1
