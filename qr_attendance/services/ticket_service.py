"""Session ticket lifecycle: issue, rotate, modify, revoke, delete."""
import logging
from datetime import datetime
from typing import Dict, Optional

from qr_attendance import db
from qr_attendance.models.attendance import AttendanceRecord
from qr_attendance.models.session_ticket import SessionTicket
from qr_attendance.services.exceptions import (
    AlreadyStarted, InvalidSchedule, PastDate, ValidationFailed
)
from qr_attendance.services.policy import AttendancePolicy

logger = logging.getLogger(__name__)

# Only descriptive fields survive modification; schedule and token do not.
MUTABLE_FIELDS = ('subject', 'description', 'location', 'capacity')


class TicketService:
    """Service for session ticket operations."""

    def __init__(self, policy: AttendancePolicy = None):
        self.policy = policy or AttendancePolicy()

    def create(
        self,
        owner_id: int,
        subject: str,
        schedule_start: datetime,
        schedule_end: datetime,
        capacity: Optional[int] = None,
        description: str = None,
        location: str = None,
        now: datetime = None
    ) -> SessionTicket:
        """
        Issue a ticket for one scheduling window.

        Raises:
            InvalidSchedule: end is not strictly after start
            PastDate: the schedule's date is before today
            ValidationFailed: capacity is not a positive integer
        """
        now = now or datetime.utcnow()

        if schedule_end <= schedule_start:
            raise InvalidSchedule()

        if schedule_start.date() < now.date():
            raise PastDate()

        capacity = self._validate_capacity(
            self.policy.default_capacity if capacity is None else capacity
        )

        ticket = SessionTicket(
            owner_id=owner_id,
            subject=subject,
            description=description,
            location=location,
            schedule_start=schedule_start,
            schedule_end=schedule_end,
            token=self._unique_token(),
            expires_at=schedule_end + self.policy.expiry_buffer,
            is_active=True,
            capacity=capacity,
            accepted_count=0
        )
        ticket.save()

        logger.info("Ticket %s issued by owner %s for %s", ticket.id, owner_id, schedule_start.isoformat())
        return ticket

    def regenerate_token(self, ticket: SessionTicket) -> SessionTicket:
        """Replace the bearer token; schedule, expiry and counts are untouched."""
        ticket.token = self._unique_token()
        db.session.commit()

        logger.info("Ticket %s token rotated", ticket.id)
        return ticket

    def modify(self, ticket: SessionTicket, fields: Dict, now: datetime = None) -> SessionTicket:
        """Update descriptive fields of a ticket that has not started."""
        now = now or datetime.utcnow()

        if ticket.has_started(now):
            raise AlreadyStarted("Cannot modify session that has already started")

        updates = {key: fields[key] for key in MUTABLE_FIELDS if key in fields}

        for key in ('subject', 'description', 'location'):
            if updates.get(key) is not None and not isinstance(updates[key], str):
                raise ValidationFailed(f"{key.capitalize()} must be text")

        if 'subject' in updates:
            subject = (updates['subject'] or '').strip()
            if not subject:
                raise ValidationFailed("Subject cannot be empty")
            updates['subject'] = subject

        if 'capacity' in updates:
            updates['capacity'] = self._validate_capacity(updates['capacity'])

        for key, value in updates.items():
            setattr(ticket, key, value)
        db.session.commit()

        logger.info("Ticket %s modified: %s", ticket.id, sorted(updates))
        return ticket

    def delete(self, ticket: SessionTicket, now: datetime = None) -> None:
        """Delete a ticket that has not started, together with its records."""
        now = now or datetime.utcnow()

        if ticket.has_started(now):
            raise AlreadyStarted("Cannot delete session that has already started")

        ticket_id = ticket.id
        try:
            AttendanceRecord.query.filter_by(ticket_id=ticket_id).delete(synchronize_session=False)
            db.session.delete(ticket)
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        logger.info("Ticket %s deleted", ticket_id)

    def revoke(self, ticket: SessionTicket) -> SessionTicket:
        """Deactivate a ticket. Always permitted and idempotent."""
        if ticket.is_active:
            ticket.is_active = False
            db.session.commit()
            logger.info("Ticket %s revoked", ticket.id)
        return ticket

    def deactivate_expired(self, now: datetime = None) -> int:
        """
        Optional cleanup: mark tickets past expiry inactive.

        Admissibility is always decided at read time, so this job only
        tidies stored state and may run at any moment or never.
        """
        now = now or datetime.utcnow()
        count = SessionTicket.query.filter(
            SessionTicket.is_active.is_(True),
            SessionTicket.expires_at < now
        ).update({SessionTicket.is_active: False}, synchronize_session=False)
        db.session.commit()

        logger.info("Deactivated %d expired tickets", count)
        return count

    @staticmethod
    def _validate_capacity(capacity) -> int:
        if isinstance(capacity, str) and capacity.strip().isdigit():
            capacity = int(capacity)
        if isinstance(capacity, bool) or not isinstance(capacity, int) or capacity < 1:
            raise ValidationFailed("Capacity must be a positive integer")
        return capacity

    @staticmethod
    def _unique_token() -> str:
        token = SessionTicket.generate_token()
        while SessionTicket.query.filter_by(token=token).first() is not None:
            token = SessionTicket.generate_token()
        return token
