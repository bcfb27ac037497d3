"""User model for authentication and stored face profiles."""
from enum import Enum
from typing import List, Optional
from werkzeug.security import generate_password_hash, check_password_hash
from qr_attendance import db
from qr_attendance.models.base import BaseModel

class UserRole(Enum):
    """User roles enumeration."""
    STUDENT = 'student'
    TEACHER = 'teacher'
    ADMIN = 'admin'

class User(BaseModel):
    """User model for all system users."""
    
    __tablename__ = 'users'
    
    # Basic Information
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    name = db.Column(db.String(255), nullable=False)
    roll_number = db.Column(db.String(50), unique=True, nullable=True, index=True)
    department = db.Column(db.String(100), nullable=True)
    
    role = db.Column(db.Enum(UserRole), nullable=False, default=UserRole.STUDENT)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    last_login = db.Column(db.DateTime, nullable=True)
    
    # Face embedding produced client-side (128 floats), never extracted here
    face_embedding = db.Column(db.JSON, nullable=True)
    
    # Relationships
    tickets = db.relationship('SessionTicket', backref='owner', lazy='dynamic')
    attendance_records = db.relationship('AttendanceRecord', backref='subject', lazy='dynamic')
    
    def set_password(self, password: str) -> None:
        """Set user password with hashing."""
        self.password_hash = generate_password_hash(password)
    
    def check_password(self, password: str) -> bool:
        """Check if provided password matches user's password."""
        return check_password_hash(self.password_hash, password)
    
    def is_teacher(self) -> bool:
        """Check if user is a teacher."""
        return self.role in [UserRole.TEACHER, UserRole.ADMIN]
    
    def is_student(self) -> bool:
        """Check if user is a student."""
        return self.role == UserRole.STUDENT
    
    @property
    def has_face_embedding(self) -> bool:
        return bool(self.face_embedding)
    
    def biometric_profile(self) -> Optional[List[float]]:
        """Stored embedding, or None when no face is registered."""
        if not self.face_embedding:
            return None
        return [float(value) for value in self.face_embedding]
    
    def to_dict(self, exclude: list = None) -> dict:
        """Convert to dictionary excluding sensitive data."""
        default_exclude = ['password_hash', 'face_embedding']
        exclude = (exclude or []) + default_exclude
        
        result = super().to_dict(exclude=exclude)
        result['has_face_embedding'] = self.has_face_embedding
        
        return result
    
    def __repr__(self) -> str:
        return f'<User {self.email}>'
