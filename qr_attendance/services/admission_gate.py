"""Admission decisions for presented tickets and biometric proofs."""
import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, List, Optional, Sequence

from qr_attendance.models.attendance import AttendanceMethod, AttendanceRecord
from qr_attendance.models.session_ticket import SessionTicket
from qr_attendance.services import exceptions
from qr_attendance.services.policy import AttendancePolicy
from qr_attendance.services.similarity import cosine_similarity

logger = logging.getLogger(__name__)


class RejectionReason(Enum):
    """Why an admission attempt was turned down."""
    INVALID_TICKET = 'invalid_ticket'
    NOT_STARTED = 'not_started'
    DUPLICATE_ADMISSION = 'duplicate_admission'
    BIOMETRIC_NOT_REGISTERED = 'biometric_not_registered'
    MISSING_PROOF = 'missing_proof'
    LOW_CONFIDENCE = 'low_confidence'


REJECTION_ERRORS = {
    RejectionReason.INVALID_TICKET: exceptions.InvalidTicket,
    RejectionReason.NOT_STARTED: exceptions.NotStarted,
    RejectionReason.DUPLICATE_ADMISSION: exceptions.DuplicateAdmission,
    RejectionReason.BIOMETRIC_NOT_REGISTERED: exceptions.BiometricNotRegistered,
    RejectionReason.MISSING_PROOF: exceptions.MissingProof,
    RejectionReason.LOW_CONFIDENCE: exceptions.LowConfidence,
}


@dataclass
class AdmissionAttempt:
    """A ticket presented by a subject at a given instant."""
    subject_id: int
    ticket_id: int
    token: str
    method: AttendanceMethod
    now: datetime
    proof: Optional[Sequence[float]] = None


@dataclass
class AdmissionCandidate:
    """Record data for an accepted attempt, before the ledger stores it."""
    subject_id: int
    ticket_id: int
    method: AttendanceMethod
    marked_at: datetime
    verified: bool
    biometric_score: Optional[float] = None


@dataclass
class AdmissionDecision:
    """Terminal state of an attempt: accepted with a candidate, or rejected."""
    accepted: bool
    candidate: Optional[AdmissionCandidate] = None
    reason: Optional[RejectionReason] = None
    existing_record: Optional[AttendanceRecord] = None
    score: Optional[float] = None

    @classmethod
    def reject(cls, reason: RejectionReason, **kwargs) -> 'AdmissionDecision':
        return cls(accepted=False, reason=reason, **kwargs)

    def raise_for_rejection(self) -> None:
        """Raise the classified error matching the rejection reason."""
        if self.accepted:
            return
        error_class = REJECTION_ERRORS[self.reason]
        if self.reason is RejectionReason.DUPLICATE_ADMISSION:
            raise error_class(existing_record=self.existing_record)
        raise error_class()


class ProfileDirectory:
    """Read-only access to stored biometric profiles."""

    def get_biometric_profile(self, subject_id: int) -> Optional[List[float]]:
        raise NotImplementedError


class UserProfileDirectory(ProfileDirectory):
    """Profiles stored on the user accounts table."""

    def get_biometric_profile(self, subject_id: int) -> Optional[List[float]]:
        from qr_attendance.models.user import User

        user = User.get_by_id(subject_id)
        if user is None:
            return None
        return user.biometric_profile()


class AdmissionGate:
    """
    Decide whether a presented ticket and proof are admissible.

    The gate only reads ticket state, the existing record for the pair and
    the stored profile; it never writes. Accepted attempts are handed to
    the AttendanceLedger, which enforces uniqueness at insert time.
    """

    def __init__(
        self,
        policy: AttendancePolicy = None,
        profiles: ProfileDirectory = None,
        scorer: Callable[[Sequence[float], Sequence[float]], float] = cosine_similarity
    ):
        self.policy = policy or AttendancePolicy()
        self.profiles = profiles or UserProfileDirectory()
        self.scorer = scorer

    def present(
        self,
        attempt: AdmissionAttempt,
        ticket: Optional[SessionTicket],
        existing_record: Optional[AttendanceRecord] = None
    ) -> AdmissionDecision:
        """
        Evaluate one attempt.

        Args:
            attempt: presented ticket reference, token, method and proof
            ticket: ticket looked up by ``attempt.ticket_id`` (None if absent)
            existing_record: record already stored for (subject, ticket)

        Returns:
            AdmissionDecision; biometric scoring may raise DimensionMismatch
        """
        now = attempt.now

        if (
            ticket is None
            or ticket.id != attempt.ticket_id
            or not ticket.matches_token(attempt.token)
            or not ticket.is_admissible(now)
        ):
            return self._rejected(attempt, RejectionReason.INVALID_TICKET)

        if now < ticket.schedule_start:
            return self._rejected(attempt, RejectionReason.NOT_STARTED)

        if existing_record is not None:
            return self._rejected(
                attempt,
                RejectionReason.DUPLICATE_ADMISSION,
                existing_record=existing_record
            )

        if attempt.method == AttendanceMethod.TOKEN_ONLY:
            return self._accepted(attempt, verified=True)

        profile = self.profiles.get_biometric_profile(attempt.subject_id)
        if not profile:
            return self._rejected(attempt, RejectionReason.BIOMETRIC_NOT_REGISTERED)

        if not attempt.proof:
            return self._rejected(attempt, RejectionReason.MISSING_PROOF)

        score = self.scorer(profile, attempt.proof)
        # NaN compares false both ways, so only a real pass admits
        if not score >= self.policy.admission_threshold:
            return self._rejected(attempt, RejectionReason.LOW_CONFIDENCE, score=score)

        return self._accepted(
            attempt,
            verified=score >= self.policy.verified_threshold,
            score=score
        )

    @staticmethod
    def _accepted(attempt: AdmissionAttempt, verified: bool, score: float = None) -> AdmissionDecision:
        candidate = AdmissionCandidate(
            subject_id=attempt.subject_id,
            ticket_id=attempt.ticket_id,
            method=attempt.method,
            marked_at=attempt.now,
            verified=verified,
            biometric_score=score
        )
        return AdmissionDecision(accepted=True, candidate=candidate, score=score)

    @staticmethod
    def _rejected(attempt: AdmissionAttempt, reason: RejectionReason, **kwargs) -> AdmissionDecision:
        logger.info(
            "Admission rejected for subject %s on ticket %s: %s",
            attempt.subject_id, attempt.ticket_id, reason.value
        )
        return AdmissionDecision.reject(reason, **kwargs)
