"""Session ticket API endpoints."""
from datetime import datetime
from flask import Blueprint, request, current_app
from flask_jwt_extended import jwt_required
from qr_attendance import limiter
from qr_attendance.models.session_ticket import SessionTicket
from qr_attendance.models.user import User, UserRole
from qr_attendance.services.attendance_ledger import AttendanceLedger
from qr_attendance.services.qr_service import QRService
from qr_attendance.services.ticket_service import TicketService
from qr_attendance.utils.decorators import teacher_required
from qr_attendance.utils.helpers import (
    success_response, error_response, current_user_id, current_policy, parse_schedule
)
from qr_attendance.utils.validators import Validator

sessions_bp = Blueprint('sessions', __name__)

def _owned_ticket(ticket_id: int):
    """Return (ticket, error_response) for the current teacher."""
    ticket = SessionTicket.get_by_id(ticket_id)
    if not ticket:
        return None, error_response("Session not found", 404)

    user = User.get_by_id(current_user_id())
    if ticket.owner_id != user.id and user.role != UserRole.ADMIN:
        return None, error_response("Access denied", 403)

    return ticket, None

def _qr_data(ticket: SessionTicket) -> dict:
    payload = QRService.build_payload(ticket)
    return {
        'payload': payload,
        'qr_code': QRService.render_image(payload)
    }

@sessions_bp.route('/health', methods=['GET'])
def health_check():
    """Health check endpoint."""
    return success_response(message='Sessions service is running')

@sessions_bp.route('', methods=['POST'])
@jwt_required()
@teacher_required
@limiter.limit("30 per hour")
def create_session():
    """Create a new session and generate its QR code."""
    data = request.get_json(silent=True) or {}

    validation = Validator.validate_required_fields(data, ['subject', 'date', 'startTime', 'endTime'])
    if not validation['is_valid']:
        return error_response(validation['errors'][0], 400)

    for field in ('subject', 'description', 'location'):
        if data.get(field) is not None and not isinstance(data[field], str):
            return error_response(f"{field} must be text", 400)

    if not data['subject'].strip():
        return error_response("subject is required", 400)

    if not Validator.validate_date(data['date']):
        return error_response("Valid date is required", 400)
    if not Validator.validate_time(data['startTime']):
        return error_response("Valid start time is required", 400)
    if not Validator.validate_time(data['endTime']):
        return error_response("Valid end time is required", 400)

    try:
        schedule_start = parse_schedule(data['date'], data['startTime'])
        schedule_end = parse_schedule(data['date'], data['endTime'])
    except ValueError:
        return error_response("Valid date is required", 400)

    service = TicketService(current_policy())
    ticket = service.create(
        owner_id=current_user_id(),
        subject=data['subject'].strip(),
        schedule_start=schedule_start,
        schedule_end=schedule_end,
        capacity=data.get('capacity'),
        description=(data.get('description') or '').strip() or None,
        location=(data.get('location') or '').strip() or None
    )

    return success_response(
        data={
            'session': ticket.to_dict(),
            **_qr_data(ticket)
        },
        message="Session created successfully",
        status_code=201
    )

@sessions_bp.route('', methods=['GET'])
@jwt_required()
@teacher_required
def list_sessions():
    """Get the current teacher's sessions."""
    page = request.args.get('page', 1, type=int)
    per_page = min(
        request.args.get('per_page', current_app.config['DEFAULT_PAGE_SIZE'], type=int),
        current_app.config['MAX_PAGE_SIZE']
    )
    status = request.args.get('status', 'all')
    now = datetime.utcnow()

    query = SessionTicket.query.filter_by(owner_id=current_user_id())

    if status == 'active':
        query = query.filter(SessionTicket.is_active.is_(True), SessionTicket.expires_at >= now)
    elif status == 'expired':
        query = query.filter(SessionTicket.expires_at < now)

    pagination = query.order_by(SessionTicket.schedule_start.desc()).paginate(
        page=page,
        per_page=per_page,
        error_out=False
    )

    return success_response(
        data=[ticket.to_dict(now=now) for ticket in pagination.items],
        message=f"Found {pagination.total} sessions",
        meta={
            'page': page,
            'per_page': per_page,
            'total': pagination.total,
            'pages': pagination.pages
        }
    )

@sessions_bp.route('/<int:ticket_id>', methods=['GET'])
@jwt_required()
@teacher_required
def get_session(ticket_id):
    """Get session details with attendance."""
    ticket, error = _owned_ticket(ticket_id)
    if error:
        return error

    records = AttendanceLedger.records_for(ticket_id=ticket.id)

    return success_response(
        data={
            'session': ticket.to_dict(),
            'attendance': [record.to_dict() for record in records],
            'stats': AttendanceLedger.summarize(records)
        }
    )

@sessions_bp.route('/<int:ticket_id>', methods=['PUT'])
@jwt_required()
@teacher_required
def update_session(ticket_id):
    """Update descriptive fields of a session that has not started."""
    ticket, error = _owned_ticket(ticket_id)
    if error:
        return error

    data = request.get_json(silent=True) or {}
    ticket = TicketService(current_policy()).modify(ticket, data)

    return success_response(
        data=ticket.to_dict(),
        message="Session updated successfully"
    )

@sessions_bp.route('/<int:ticket_id>', methods=['DELETE'])
@jwt_required()
@teacher_required
def delete_session(ticket_id):
    """Delete a session and its attendance records."""
    ticket, error = _owned_ticket(ticket_id)
    if error:
        return error

    TicketService(current_policy()).delete(ticket)

    return success_response(message="Session deleted successfully")

@sessions_bp.route('/<int:ticket_id>/regenerate-token', methods=['POST'])
@jwt_required()
@teacher_required
@limiter.limit("60 per hour")
def regenerate_token(ticket_id):
    """Rotate the session token and return a fresh QR code."""
    ticket, error = _owned_ticket(ticket_id)
    if error:
        return error

    ticket = TicketService(current_policy()).regenerate_token(ticket)

    return success_response(
        data={
            'token': ticket.token,
            **_qr_data(ticket)
        },
        message="QR code regenerated successfully"
    )

@sessions_bp.route('/<int:ticket_id>/revoke', methods=['POST'])
@jwt_required()
@teacher_required
def revoke_session(ticket_id):
    """Stop accepting attendance for a session."""
    ticket, error = _owned_ticket(ticket_id)
    if error:
        return error

    ticket = TicketService(current_policy()).revoke(ticket)

    return success_response(
        data=ticket.to_dict(include_token=False),
        message="Session revoked successfully"
    )
