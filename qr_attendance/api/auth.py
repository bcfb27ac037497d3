"""Authentication API."""
from flask import Blueprint, request
from flask_jwt_extended import jwt_required, get_jwt_identity
from qr_attendance import limiter
from qr_attendance.utils.helpers import success_response, error_response
from qr_attendance.services.auth_service import AuthService

auth_bp = Blueprint("auth", __name__)

@auth_bp.route("/health", methods=["GET"])
def health_check():
    """Health check endpoint."""
    return success_response(message="Auth service is running")

@auth_bp.route("/register", methods=["POST"])
@limiter.limit("10 per hour")
def register():
    """Register a student or teacher account."""
    data = request.get_json(silent=True)
    
    if not data:
        return error_response("Request body must be JSON", 400)
    
    result, error = AuthService.register(
        email=data.get("email", ""),
        password=data.get("password", ""),
        name=data.get("name", ""),
        role=data.get("role", "student"),
        roll_number=data.get("roll_number"),
        department=data.get("department")
    )
    
    if error:
        return error_response(error, 400)
    
    return success_response(
        data=result,
        message="User registered successfully",
        status_code=201
    )

@auth_bp.route("/login", methods=["POST"])
@limiter.limit("5 per minute")
def login():
    """Login with email and password."""
    data = request.get_json(silent=True)
    
    if not data:
        return error_response("Request body must be JSON", 400)
    
    email = data.get("email", "").strip()
    password = data.get("password", "")
    
    if not email or not password:
        return error_response("Email and password are required", 400)
    
    result, error = AuthService.login(email, password)
    
    if error:
        return error_response(error, 401)
    
    return success_response(
        data=result,
        message="Login successful"
    )

@auth_bp.route("/me", methods=["GET"])
@jwt_required()
def get_current_user():
    """Get current user profile."""
    user = AuthService.get_user_by_id(get_jwt_identity())
    
    if not user:
        return error_response("User not found", 404)
    
    return success_response(data=user.to_dict())

@auth_bp.route("/refresh", methods=["POST"])
@jwt_required(refresh=True)
def refresh_token():
    """Refresh access token."""
    result, error = AuthService.refresh_token(get_jwt_identity())
    
    if error:
        return error_response(error, 401)
    
    return success_response(
        data=result,
        message="Token refreshed successfully"
    )
