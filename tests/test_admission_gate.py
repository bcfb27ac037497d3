"""Test admission decisions."""
from datetime import datetime, timedelta

import pytest

from qr_attendance.models.attendance import AttendanceMethod, AttendanceRecord
from qr_attendance.models.session_ticket import SessionTicket
from qr_attendance.services.admission_gate import (
    AdmissionAttempt, AdmissionGate, ProfileDirectory, RejectionReason
)
from qr_attendance.services.exceptions import (
    BiometricNotRegistered, DimensionMismatch, DuplicateAdmission, InvalidTicket, LowConfidence,
    ValidationFailed
)
from qr_attendance.services.policy import AttendancePolicy

from conftest import unit_vector, vector_with_similarity

START = datetime(2031, 3, 10, 9, 0)
END = datetime(2031, 3, 10, 10, 0)
SUBJECT_ID = 7
OTHER_SUBJECT_ID = 8


class DictProfiles(ProfileDirectory):
    def __init__(self, profiles):
        self.profiles = profiles

    def get_biometric_profile(self, subject_id):
        return self.profiles.get(subject_id)


@pytest.fixture
def ticket():
    return SessionTicket(
        id=1,
        owner_id=1,
        subject='Algorithms',
        schedule_start=START,
        schedule_end=END,
        token='current-token',
        expires_at=END + timedelta(minutes=30),
        is_active=True,
        capacity=100,
        accepted_count=0
    )


@pytest.fixture
def gate():
    return AdmissionGate(
        AttendancePolicy(),
        DictProfiles({SUBJECT_ID: unit_vector()})
    )


def attempt(now, token='current-token', method=AttendanceMethod.TOKEN_ONLY, proof=None, subject_id=SUBJECT_ID):
    return AdmissionAttempt(
        subject_id=subject_id,
        ticket_id=1,
        token=token,
        method=method,
        proof=proof,
        now=now
    )


def test_token_only_accepted(gate, ticket):
    decision = gate.present(attempt(START + timedelta(minutes=5)), ticket)

    assert decision.accepted
    assert decision.candidate.verified is True
    assert decision.candidate.biometric_score is None
    assert decision.candidate.marked_at == START + timedelta(minutes=5)
    decision.raise_for_rejection()


def test_unknown_ticket_rejected(gate):
    decision = gate.present(attempt(START), None)
    assert decision.reason is RejectionReason.INVALID_TICKET
    with pytest.raises(InvalidTicket):
        decision.raise_for_rejection()


def test_token_mismatch_rejected(gate, ticket):
    decision = gate.present(attempt(START, token='stale-token'), ticket)
    assert decision.reason is RejectionReason.INVALID_TICKET


def test_revoked_ticket_rejected(gate, ticket):
    ticket.is_active = False
    decision = gate.present(attempt(START + timedelta(minutes=1)), ticket)
    assert decision.reason is RejectionReason.INVALID_TICKET


def test_not_started_rejected(gate, ticket):
    decision = gate.present(attempt(START - timedelta(minutes=1)), ticket)
    assert decision.reason is RejectionReason.NOT_STARTED


def test_expiry_boundary(gate, ticket):
    assert gate.present(attempt(ticket.expires_at), ticket).accepted
    decision = gate.present(attempt(ticket.expires_at + timedelta(seconds=1)), ticket)
    assert decision.reason is RejectionReason.INVALID_TICKET


def test_existing_record_rejected_with_record(gate, ticket):
    existing = AttendanceRecord(subject_id=SUBJECT_ID, ticket_id=1, method=AttendanceMethod.TOKEN_ONLY)
    decision = gate.present(attempt(START + timedelta(minutes=2)), ticket, existing)

    assert decision.reason is RejectionReason.DUPLICATE_ADMISSION
    assert decision.existing_record is existing
    with pytest.raises(DuplicateAdmission) as excinfo:
        decision.raise_for_rejection()
    assert excinfo.value.existing_record is existing
    assert excinfo.value.status_code == 409


def test_biometric_without_profile(gate, ticket):
    decision = gate.present(
        attempt(START, method=AttendanceMethod.BIOMETRIC, proof=unit_vector(), subject_id=OTHER_SUBJECT_ID),
        ticket
    )
    assert decision.reason is RejectionReason.BIOMETRIC_NOT_REGISTERED
    with pytest.raises(BiometricNotRegistered):
        decision.raise_for_rejection()


def test_biometric_without_proof(gate, ticket):
    decision = gate.present(attempt(START, method=AttendanceMethod.BIOMETRIC), ticket)
    assert decision.reason is RejectionReason.MISSING_PROOF


def test_profile_checked_before_proof(gate, ticket):
    decision = gate.present(
        attempt(START, method=AttendanceMethod.BIOMETRIC, subject_id=OTHER_SUBJECT_ID),
        ticket
    )
    assert decision.reason is RejectionReason.BIOMETRIC_NOT_REGISTERED


@pytest.mark.parametrize('score, accepted, verified', [
    (0.55, False, None),
    (0.65, True, False),
    (0.85, True, True),
])
def test_biometric_thresholds(gate, ticket, score, accepted, verified):
    decision = gate.present(
        attempt(START, method=AttendanceMethod.BIOMETRIC, proof=vector_with_similarity(score)),
        ticket
    )

    assert decision.accepted is accepted
    if accepted:
        assert decision.candidate.verified is verified
        assert decision.candidate.biometric_score == pytest.approx(score)
    else:
        assert decision.reason is RejectionReason.LOW_CONFIDENCE
        with pytest.raises(LowConfidence):
            decision.raise_for_rejection()


def test_admission_threshold_is_configurable(ticket):
    gate = AdmissionGate(
        AttendancePolicy(admission_threshold=0.5),
        DictProfiles({SUBJECT_ID: unit_vector()})
    )
    decision = gate.present(
        attempt(START, method=AttendanceMethod.BIOMETRIC, proof=vector_with_similarity(0.55)),
        ticket
    )
    assert decision.accepted
    assert decision.candidate.verified is False


def test_injected_scorer(ticket):
    gate = AdmissionGate(
        AttendancePolicy(),
        DictProfiles({SUBJECT_ID: [1.0]}),
        scorer=lambda profile, proof: 0.8
    )
    decision = gate.present(attempt(START, method=AttendanceMethod.BIOMETRIC, proof=[1.0]), ticket)
    assert decision.candidate.verified is True


def test_proof_dimension_mismatch(gate, ticket):
    with pytest.raises(DimensionMismatch):
        gate.present(attempt(START, method=AttendanceMethod.BIOMETRIC, proof=[1.0] * 64), ticket)


@pytest.mark.parametrize('bad_value', [float('nan'), float('inf'), float('-inf')])
def test_non_finite_proof_fails(gate, ticket, bad_value):
    proof = unit_vector()
    proof[5] = bad_value
    with pytest.raises(ValidationFailed):
        gate.present(attempt(START, method=AttendanceMethod.BIOMETRIC, proof=proof), ticket)


def test_nan_score_is_low_confidence(ticket):
    gate = AdmissionGate(
        AttendancePolicy(),
        DictProfiles({SUBJECT_ID: [1.0]}),
        scorer=lambda profile, proof: float('nan')
    )
    decision = gate.present(attempt(START, method=AttendanceMethod.BIOMETRIC, proof=[1.0]), ticket)

    assert not decision.accepted
    assert decision.reason is RejectionReason.LOW_CONFIDENCE
    with pytest.raises(LowConfidence):
        decision.raise_for_rejection()
