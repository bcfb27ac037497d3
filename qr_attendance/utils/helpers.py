"""Helper functions for the application."""
from datetime import datetime
from flask import jsonify, current_app
from flask_jwt_extended import get_jwt_identity
from typing import Any

def handle_error(error, status_code: int):
    """Handle application errors with consistent format."""
    message = getattr(error, 'description', None) or str(error)
    return jsonify({
        'error': True,
        'message': message,
        'status_code': status_code
    }), status_code

def success_response(data: Any = None, message: str = "Success", status_code: int = 200, meta: dict = None):
    """Return consistent success response."""
    response = {
        'error': False,
        'message': message
    }
    
    if data is not None:
        response['data'] = data
    
    if meta is not None:
        response['meta'] = meta
    
    return jsonify(response), status_code

def error_response(message: str, status_code: int = 400, data: Any = None):
    """Return consistent error response."""
    response = {
        'error': True,
        'message': message,
        'status_code': status_code
    }
    
    if data is not None:
        response['data'] = data
    
    return jsonify(response), status_code

def current_user_id() -> int:
    """JWT identity as an integer user id."""
    return int(get_jwt_identity())

def current_policy():
    """Attendance policy built from the active app config."""
    from qr_attendance.services.policy import AttendancePolicy
    return AttendancePolicy.from_config(current_app.config)

def parse_schedule(date_value: str, time_value: str) -> datetime:
    """Combine an ISO date and HH:MM time into a naive UTC datetime.

    Clients send schedule times in UTC; no server-local conversion happens.
    """
    return datetime.strptime(f"{date_value} {time_value}", "%Y-%m-%d %H:%M")
