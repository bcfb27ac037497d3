"""Validation utilities for the application."""
import math
import re
from numbers import Real
from typing import Dict, List, Any

TIME_PATTERN = re.compile(r'^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$')
DATE_PATTERN = re.compile(r'^\d{4}-\d{2}-\d{2}$')

class Validator:
    """Validation helper class."""
    
    @staticmethod
    def validate_email(email: str) -> bool:
        """Validate email format."""
        if not email:
            return False
        pattern = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
        return bool(re.match(pattern, email.strip()))
    
    @staticmethod
    def validate_password(password: str) -> Dict[str, Any]:
        """Validate password strength."""
        errors = []
        
        if not password:
            errors.append("Password is required")
        elif len(password) < 6:
            errors.append("Password must be at least 6 characters long")
        elif len(password) > 128:
            errors.append("Password is too long")
        
        return {
            "is_valid": len(errors) == 0,
            "errors": errors
        }
    
    @staticmethod
    def validate_name(name: str) -> Dict[str, Any]:
        """Validate user name."""
        errors = []
        
        if not name or not name.strip():
            errors.append("Name is required")
        elif len(name.strip()) < 2:
            errors.append("Name must be at least 2 characters long")
        elif len(name.strip()) > 100:
            errors.append("Name is too long")
        
        return {
            "is_valid": len(errors) == 0,
            "errors": errors
        }
    
    @staticmethod
    def validate_required_fields(data: Dict, required_fields: List[str]) -> Dict[str, Any]:
        """Validate required fields in data."""
        errors = []
        
        for field in required_fields:
            if field not in data or data[field] in (None, ''):
                errors.append(f"{field} is required")
        
        return {
            "is_valid": len(errors) == 0,
            "errors": errors
        }
    
    @staticmethod
    def validate_time(value: str) -> bool:
        """HH:MM, 24-hour clock."""
        return isinstance(value, str) and bool(TIME_PATTERN.match(value))
    
    @staticmethod
    def validate_date(value: str) -> bool:
        """YYYY-MM-DD."""
        return isinstance(value, str) and bool(DATE_PATTERN.match(value))
    
    @staticmethod
    def validate_embedding(values: Any, dimensions: int = None) -> Dict[str, Any]:
        """Validate a numeric embedding, optionally of a fixed length."""
        errors = []
        
        if not isinstance(values, list) or not values:
            errors.append("Face embedding must be a non-empty array")
        elif not all(isinstance(v, Real) and not isinstance(v, bool) for v in values):
            errors.append("All embedding values must be numbers")
        elif not all(math.isfinite(v) for v in values):
            errors.append("Embedding values must be finite numbers")
        elif dimensions is not None and len(values) != dimensions:
            errors.append(f"Face embedding must be exactly {dimensions} dimensions")
        
        return {
            "is_valid": len(errors) == 0,
            "errors": errors
        }
