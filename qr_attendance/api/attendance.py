"""Attendance API endpoints."""
from flask import Blueprint, request
from flask_jwt_extended import jwt_required
from qr_attendance import limiter
from qr_attendance.models.attendance import AttendanceMethod, AttendanceRecord
from qr_attendance.models.user import User, UserRole
from qr_attendance.services.attendance_ledger import AttendanceLedger
from qr_attendance.services.attendance_service import AttendanceService
from qr_attendance.utils.decorators import student_required
from qr_attendance.utils.helpers import success_response, error_response, current_user_id, current_policy
from qr_attendance.utils.validators import Validator

attendance_bp = Blueprint('attendance', __name__)

def _reviewable_record(record_id: int):
    """Return (record, error_response) for the ticket owner or an admin."""
    record = AttendanceRecord.get_by_id(record_id)
    if not record:
        return None, error_response("Attendance record not found", 404)

    user = User.get_by_id(current_user_id())
    if record.ticket.owner_id != user.id and user.role != UserRole.ADMIN:
        return None, error_response("Access denied", 403)

    return record, None

@attendance_bp.route('/health', methods=['GET'])
def health_check():
    """Health check endpoint."""
    return success_response(message='Attendance service is running')

@attendance_bp.route('', methods=['POST'])
@jwt_required()
@student_required
@limiter.limit("30 per minute")
def mark_attendance():
    """Present a scanned ticket and record attendance."""
    data = request.get_json(silent=True) or {}

    validation = Validator.validate_required_fields(data, ['ticketId', 'token'])
    if not validation['is_valid']:
        return error_response(validation['errors'][0], 400)

    if not isinstance(data['ticketId'], int) or isinstance(data['ticketId'], bool):
        return error_response("Valid ticket ID is required", 400)

    try:
        method = AttendanceMethod(data.get('method', AttendanceMethod.TOKEN_ONLY.value))
    except ValueError:
        return error_response("Invalid method", 400)

    proof = data.get('proof')
    if proof is not None:
        check = Validator.validate_embedding(proof)
        if not check['is_valid']:
            return error_response(check['errors'][0], 400)

    service = AttendanceService(current_policy())
    record = service.mark(
        subject_id=current_user_id(),
        ticket_id=data['ticketId'],
        token=str(data['token']),
        method=method,
        proof=proof
    )

    ticket = record.ticket
    return success_response(
        data={
            'attendance': record.to_dict(),
            'session': {
                'id': ticket.id,
                'subject': ticket.subject,
                'date': ticket.schedule_start.date().isoformat(),
                'start_time': ticket.schedule_start.strftime('%H:%M'),
                'end_time': ticket.schedule_end.strftime('%H:%M'),
                'location': ticket.location
            }
        },
        message="Attendance marked successfully",
        status_code=201
    )

@attendance_bp.route('', methods=['GET'])
@jwt_required()
def list_attendance():
    """Read attendance filtered by subject and/or ticket."""
    user = User.get_by_id(current_user_id())
    subject_id = request.args.get('subject', type=int)
    ticket_id = request.args.get('ticket', type=int)

    # Students only ever see their own records
    if user.role == UserRole.STUDENT:
        if subject_id is not None and subject_id != user.id:
            return error_response("Access denied", 403)
        subject_id = user.id
    elif user.role == UserRole.TEACHER and ticket_id is None:
        return error_response("Ticket filter is required", 400)

    records = AttendanceLedger.records_for(subject_id=subject_id, ticket_id=ticket_id)

    if user.role == UserRole.TEACHER:
        records = [r for r in records if r.ticket.owner_id == user.id]

    return success_response(
        data={
            'records': [record.to_dict() for record in records],
            'stats': AttendanceLedger.summarize(records)
        }
    )

@attendance_bp.route('/my-records', methods=['GET'])
@jwt_required()
@student_required
def get_my_attendance():
    """Get student's attendance records."""
    records = AttendanceLedger.records_for(subject_id=current_user_id())

    status = request.args.get('status')
    if status in ('present', 'late', 'absent'):
        records = [r for r in records if r.status.value == status]

    attendance_data = []
    for record in records:
        ticket = record.ticket
        entry = record.to_dict()
        entry['session'] = {
            'id': ticket.id,
            'subject': ticket.subject,
            'date': ticket.schedule_start.date().isoformat(),
            'teacher': ticket.owner.name
        }
        attendance_data.append(entry)

    return success_response(
        data={
            'records': attendance_data,
            'stats': AttendanceLedger.summarize(records)
        }
    )

@attendance_bp.route('/<int:record_id>', methods=['PUT'])
@jwt_required()
def update_attendance(record_id):
    """Update attendance status or remarks (ticket owner or admin)."""
    record, error = _reviewable_record(record_id)
    if error:
        return error

    data = request.get_json(silent=True) or {}
    record = AttendanceLedger(current_policy()).revise(
        record.id,
        status=data.get('status'),
        remarks=data.get('remarks')
    )

    return success_response(
        data=record.to_dict(),
        message="Attendance updated successfully"
    )

@attendance_bp.route('/<int:record_id>', methods=['DELETE'])
@jwt_required()
def delete_attendance(record_id):
    """Delete attendance record (ticket owner or admin)."""
    record, error = _reviewable_record(record_id)
    if error:
        return error

    AttendanceLedger(current_policy()).remove(record.id)

    return success_response(message="Attendance record deleted successfully")
