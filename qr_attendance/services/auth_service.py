"""Authentication service for user accounts."""
from flask_jwt_extended import create_access_token, create_refresh_token
from qr_attendance import db
from qr_attendance.models.user import User, UserRole
from qr_attendance.utils.validators import Validator
from datetime import datetime

class AuthService:
    @staticmethod
    def login(email: str, password: str) -> tuple[dict, str]:
        """Authenticate user and return tokens."""
        if not email or not password:
            return None, "Email and password are required"
        
        if not Validator.validate_email(email):
            return None, "Invalid email format"
        
        user = User.query.filter_by(email=email.lower().strip()).first()
        
        if not user or not user.check_password(password):
            return None, "Invalid email or password"
        
        if not user.is_active:
            return None, "Account is deactivated"
        
        user.last_login = datetime.utcnow()
        db.session.commit()
        
        # Identities are strings in JWT "sub"
        access_token = create_access_token(identity=str(user.id))
        refresh_token = create_refresh_token(identity=str(user.id))
        
        return {
            "access_token": access_token,
            "refresh_token": refresh_token,
            "user": user.to_dict()
        }, None
    
    @staticmethod
    def register(email: str, password: str, name: str, role: str = "student",
                 roll_number: str = None, department: str = None) -> tuple[dict, str]:
        """Register new user."""
        if not all([email, password, name]):
            return None, "Email, password and name are required"
        
        if not Validator.validate_email(email):
            return None, "Invalid email format"
        
        password_check = Validator.validate_password(password)
        if not password_check["is_valid"]:
            return None, password_check["errors"][0]
        
        name_check = Validator.validate_name(name)
        if not name_check["is_valid"]:
            return None, name_check["errors"][0]
        
        email = email.lower().strip()
        if User.query.filter_by(email=email).first():
            return None, "Email already exists"
        
        if roll_number and User.query.filter_by(roll_number=roll_number).first():
            return None, "Roll number already exists"
        
        # Admins are created from the CLI only
        try:
            user_role = UserRole((role or "student").lower())
        except ValueError:
            user_role = UserRole.STUDENT
        if user_role == UserRole.ADMIN:
            user_role = UserRole.STUDENT
        
        user = User(
            email=email,
            name=name.strip(),
            role=user_role,
            roll_number=roll_number,
            department=department
        )
        user.set_password(password)
        user.save()
        
        return user.to_dict(), None
    
    @staticmethod
    def get_user_by_id(user_id) -> User:
        """Get user by ID."""
        return User.get_by_id(int(user_id))
    
    @staticmethod
    def refresh_token(user_id) -> tuple[dict, str]:
        """Generate new access token."""
        user = AuthService.get_user_by_id(user_id)
        if not user or not user.is_active:
            return None, "User not found or inactive"
        
        access_token = create_access_token(identity=str(user.id))
        
        return {
            "access_token": access_token,
            "user": user.to_dict()
        }, None
