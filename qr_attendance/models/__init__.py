"""Models package with all models."""
from .base import BaseModel
from .user import User, UserRole
from .session_ticket import SessionTicket
from .attendance import AttendanceRecord, AttendanceStatus, AttendanceMethod

__all__ = [
    'BaseModel', 'User', 'UserRole',
    'SessionTicket',
    'AttendanceRecord', 'AttendanceStatus', 'AttendanceMethod'
]
