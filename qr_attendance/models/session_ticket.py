"""Session ticket: a scheduled window plus its current bearer token."""
from datetime import datetime
from qr_attendance import db
from qr_attendance.models.base import BaseModel
import secrets

class SessionTicket(BaseModel):
    """Scheduled session that students check into with a QR token."""
    
    __tablename__ = 'session_tickets'
    
    owner_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    subject = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    location = db.Column(db.String(255), nullable=True)
    
    # Schedule (naive UTC, same calendar date)
    schedule_start = db.Column(db.DateTime, nullable=False)
    schedule_end = db.Column(db.DateTime, nullable=False)
    
    token = db.Column(db.String(64), unique=True, nullable=False)
    expires_at = db.Column(db.DateTime, nullable=False, index=True)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    
    # Advisory only, never enforced as a cap
    capacity = db.Column(db.Integer, default=100, nullable=False)
    accepted_count = db.Column(db.Integer, default=0, nullable=False)
    
    # Relationships
    records = db.relationship(
        'AttendanceRecord',
        backref='ticket',
        lazy='dynamic',
        cascade='all, delete-orphan',
        passive_deletes=True
    )
    
    @staticmethod
    def generate_token() -> str:
        """Generate a fresh bearer token."""
        return secrets.token_urlsafe(32)
    
    def is_expired(self, now: datetime = None) -> bool:
        """Check if ticket is past its expiry."""
        now = now or datetime.utcnow()
        return now > self.expires_at
    
    def is_admissible(self, now: datetime = None) -> bool:
        """Active and not yet expired; the expiry instant itself still counts."""
        now = now or datetime.utcnow()
        return bool(self.is_active) and now <= self.expires_at
    
    def has_started(self, now: datetime = None) -> bool:
        now = now or datetime.utcnow()
        return now >= self.schedule_start
    
    def matches_token(self, token: str) -> bool:
        if not token:
            return False
        return secrets.compare_digest(self.token.encode(), token.encode())
    
    def to_dict(self, include_token: bool = True, now: datetime = None):
        """Convert to dictionary."""
        exclude = [] if include_token else ['token']
        data = super().to_dict(exclude=exclude)
        data['date'] = self.schedule_start.date().isoformat()
        data['start_time'] = self.schedule_start.strftime('%H:%M')
        data['end_time'] = self.schedule_end.strftime('%H:%M')
        data['is_expired'] = self.is_expired(now)
        return data
    
    def __repr__(self):
        return f'<SessionTicket {self.id} {self.subject}>'
