"""Marks attendance: admission gate first, ledger second."""
from datetime import datetime
from typing import Optional, Sequence

from qr_attendance.models.attendance import AttendanceMethod, AttendanceRecord
from qr_attendance.models.session_ticket import SessionTicket
from qr_attendance.services.admission_gate import AdmissionAttempt, AdmissionGate, ProfileDirectory
from qr_attendance.services.attendance_ledger import AttendanceLedger
from qr_attendance.services.policy import AttendancePolicy


class AttendanceService:
    """Entry point for presenting a ticket."""

    def __init__(self, policy: AttendancePolicy = None, profiles: ProfileDirectory = None):
        self.policy = policy or AttendancePolicy()
        self.gate = AdmissionGate(self.policy, profiles)
        self.ledger = AttendanceLedger(self.policy)

    def mark(
        self,
        subject_id: int,
        ticket_id: int,
        token: str,
        method: AttendanceMethod = AttendanceMethod.TOKEN_ONLY,
        proof: Optional[Sequence[float]] = None,
        now: datetime = None
    ) -> AttendanceRecord:
        """
        Present a ticket and record attendance on acceptance.

        Raises the classified error of the rejection reason; a record
        committed by a concurrent attempt surfaces as DuplicateAdmission.
        """
        attempt = AdmissionAttempt(
            subject_id=subject_id,
            ticket_id=ticket_id,
            token=token,
            method=method,
            proof=proof,
            now=now or datetime.utcnow()
        )

        ticket = SessionTicket.get_by_id(ticket_id) if ticket_id is not None else None
        existing = self.ledger.find(subject_id, ticket_id) if ticket is not None else None

        decision = self.gate.present(attempt, ticket, existing)
        decision.raise_for_rejection()

        return self.ledger.admit(decision.candidate, ticket)
