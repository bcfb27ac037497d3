"""Attendance ledger: at-most-one record per subject and ticket."""
import logging
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from qr_attendance import db
from qr_attendance.models.attendance import AttendanceMethod, AttendanceRecord, AttendanceStatus
from qr_attendance.models.session_ticket import SessionTicket
from qr_attendance.services.admission_gate import AdmissionCandidate
from qr_attendance.services.exceptions import DuplicateAdmission, NotFound, ValidationFailed
from qr_attendance.services.policy import AttendancePolicy

logger = logging.getLogger(__name__)


def classify_status(marked_at: datetime, schedule_start: datetime, late_after: timedelta) -> AttendanceStatus:
    """Late only when strictly past the threshold instant."""
    if marked_at > schedule_start + late_after:
        return AttendanceStatus.LATE
    return AttendanceStatus.PRESENT


class AttendanceLedger:
    """Persists admitted attendance and keeps ticket counts in step."""

    def __init__(self, policy: AttendancePolicy = None):
        self.policy = policy or AttendancePolicy()

    @staticmethod
    def find(subject_id: int, ticket_id: int) -> Optional[AttendanceRecord]:
        return AttendanceRecord.query.filter_by(
            subject_id=subject_id,
            ticket_id=ticket_id
        ).first()

    def admit(self, candidate: AdmissionCandidate, ticket: SessionTicket) -> AttendanceRecord:
        """
        Store an accepted candidate.

        Insert and count increment commit together. The unique constraint on
        (subject_id, ticket_id) decides concurrent admits for the same pair:
        the loser gets DuplicateAdmission carrying the committed record.
        """
        record = AttendanceRecord(
            subject_id=candidate.subject_id,
            ticket_id=candidate.ticket_id,
            status=classify_status(candidate.marked_at, ticket.schedule_start, self.policy.late_after),
            marked_at=candidate.marked_at,
            method=candidate.method,
            biometric_score=candidate.biometric_score if candidate.method == AttendanceMethod.BIOMETRIC else None,
            verified=candidate.verified
        )

        try:
            db.session.add(record)
            db.session.flush()
            db.session.execute(
                update(SessionTicket)
                .where(SessionTicket.id == candidate.ticket_id)
                .values(accepted_count=SessionTicket.accepted_count + 1)
            )
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            existing = self.find(candidate.subject_id, candidate.ticket_id)
            if existing is None:
                raise
            logger.warning(
                "Concurrent admission lost for subject %s on ticket %s",
                candidate.subject_id, candidate.ticket_id
            )
            raise DuplicateAdmission(existing_record=existing)
        except Exception:
            db.session.rollback()
            raise

        logger.info(
            "Admitted subject %s on ticket %s as %s via %s",
            record.subject_id, record.ticket_id, record.status.value, record.method.value
        )
        return record

    def revise(self, record_id: int, status: str = None, remarks: str = None) -> AttendanceRecord:
        """Reviewer update of status and remarks; marked_at never changes."""
        record = AttendanceRecord.get_by_id(record_id)
        if record is None:
            raise NotFound("Attendance record not found")

        if status is not None:
            try:
                record.status = AttendanceStatus(status)
            except ValueError:
                raise ValidationFailed("Invalid status")

        if remarks is not None:
            if not isinstance(remarks, str):
                raise ValidationFailed("Remarks must be text")
            record.remarks = remarks.strip()

        db.session.commit()
        return record

    def remove(self, record_id: int) -> None:
        """Delete a record and release its slot on the ticket."""
        record = AttendanceRecord.get_by_id(record_id)
        if record is None:
            raise NotFound("Attendance record not found")

        ticket_id = record.ticket_id
        try:
            db.session.delete(record)
            db.session.execute(
                update(SessionTicket)
                .where(SessionTicket.id == ticket_id)
                .values(accepted_count=SessionTicket.accepted_count - 1)
            )
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        logger.info("Removed attendance record %s from ticket %s", record_id, ticket_id)

    @staticmethod
    def records_for(subject_id: int = None, ticket_id: int = None) -> List[AttendanceRecord]:
        query = AttendanceRecord.query
        if subject_id is not None:
            query = query.filter_by(subject_id=subject_id)
        if ticket_id is not None:
            query = query.filter_by(ticket_id=ticket_id)
        return query.order_by(AttendanceRecord.marked_at.desc()).all()

    @staticmethod
    def summarize(records: List[AttendanceRecord]) -> Dict[str, int]:
        """Counts by status and method."""
        stats = {
            'total': len(records),
            'present': 0,
            'late': 0,
            'absent': 0,
            'token_only': 0,
            'biometric': 0,
            'verified': 0
        }
        for record in records:
            stats[record.status.value] += 1
            stats[record.method.value] += 1
            if record.verified:
                stats['verified'] += 1
        return stats
