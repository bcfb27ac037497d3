"""Shared fixtures for the QR Attendance tests."""
import math
from datetime import datetime, timedelta

import pytest
from flask_jwt_extended import create_access_token

from qr_attendance import create_app, db
from qr_attendance.models.session_ticket import SessionTicket
from qr_attendance.models.user import User, UserRole

EMBEDDING_SIZE = 128


def unit_vector(size: int = EMBEDDING_SIZE):
    vector = [0.0] * size
    vector[0] = 1.0
    return vector


def vector_with_similarity(similarity: float, size: int = EMBEDDING_SIZE):
    """Vector whose cosine similarity with unit_vector() is `similarity`."""
    vector = [0.0] * size
    vector[0] = similarity
    vector[1] = math.sqrt(1 - similarity ** 2)
    return vector


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


def _make_user(email, name, role, embedding=None):
    user = User(email=email, name=name, role=role, face_embedding=embedding)
    user.set_password('password123')
    return user.save()


@pytest.fixture
def teacher(app):
    return _make_user('teacher@example.com', 'Teacher One', UserRole.TEACHER)


@pytest.fixture
def other_teacher(app):
    return _make_user('teacher2@example.com', 'Teacher Two', UserRole.TEACHER)


@pytest.fixture
def student(app):
    return _make_user('student@example.com', 'Student One', UserRole.STUDENT)


@pytest.fixture
def enrolled_student(app):
    """Student with a registered face embedding."""
    return _make_user('face@example.com', 'Face Student', UserRole.STUDENT, embedding=unit_vector())


def auth_headers(user):
    token = create_access_token(identity=str(user.id))
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture
def make_ticket(app, teacher):
    """Insert a ticket whose schedule is relative to the real clock."""
    def _make(start_offset=timedelta(minutes=-5), duration=timedelta(hours=1), **fields):
        start = datetime.utcnow() + start_offset
        end = start + duration
        ticket = SessionTicket(
            owner_id=fields.pop('owner_id', teacher.id),
            subject=fields.pop('subject', 'Algorithms'),
            schedule_start=start,
            schedule_end=end,
            token=SessionTicket.generate_token(),
            expires_at=end + timedelta(minutes=30),
            is_active=fields.pop('is_active', True),
            capacity=fields.pop('capacity', 100),
            accepted_count=0,
            **fields
        )
        return ticket.save()
    return _make
