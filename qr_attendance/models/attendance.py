"""Attendance record admitted against a session ticket."""
from datetime import datetime
from enum import Enum
from qr_attendance import db
from qr_attendance.models.base import BaseModel

class AttendanceStatus(Enum):
    """Stored attendance status."""
    PRESENT = 'present'
    LATE = 'late'
    ABSENT = 'absent'  # reviewer-only, admission never produces it

class AttendanceMethod(Enum):
    """How the attendee proved presence."""
    TOKEN_ONLY = 'token_only'
    BIOMETRIC = 'biometric'

class AttendanceRecord(BaseModel):
    """Attendance record model."""
    
    __tablename__ = 'attendance_records'
    __table_args__ = (
        db.UniqueConstraint('subject_id', 'ticket_id', name='uq_attendance_subject_ticket'),
        db.Index('ix_attendance_ticket_status', 'ticket_id', 'status'),
    )
    
    subject_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    ticket_id = db.Column(
        db.Integer,
        db.ForeignKey('session_tickets.id', ondelete='CASCADE'),
        nullable=False
    )
    status = db.Column(db.Enum(AttendanceStatus), nullable=False, default=AttendanceStatus.PRESENT)
    marked_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    
    # Verification details
    method = db.Column(db.Enum(AttendanceMethod), nullable=False)
    biometric_score = db.Column(db.Float, nullable=True)
    verified = db.Column(db.Boolean, default=False, nullable=False)
    
    # Reviewer annotation
    remarks = db.Column(db.Text, nullable=True)
    
    def to_dict(self, exclude: list = None):
        """Convert to dictionary."""
        data = super().to_dict(exclude=exclude)
        if self.method != AttendanceMethod.BIOMETRIC:
            data.pop('biometric_score', None)
        return data
    
    def __repr__(self):
        return f'<AttendanceRecord {self.subject_id}-{self.ticket_id}>'
