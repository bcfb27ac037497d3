"""Error kinds raised by the attendance core.

Every error here is a classified, non-transient failure: the caller has to
change its input (re-scan, re-capture, or accept the existing record).
Opaque storage failures are not wrapped and reach the caller unchanged.
"""


class AttendanceError(Exception):
    """Base class for classified attendance errors."""

    status_code = 400
    default_message = "Attendance request rejected"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationFailed(AttendanceError):
    default_message = "Invalid request data"


class InvalidSchedule(AttendanceError):
    default_message = "End time must be after start time"


class PastDate(AttendanceError):
    default_message = "Cannot create session for past dates"


class AlreadyStarted(AttendanceError):
    default_message = "Session has already started"


class InvalidTicket(AttendanceError):
    default_message = "Invalid QR code or session not found"


class NotStarted(AttendanceError):
    default_message = "Session has not started yet"


class DuplicateAdmission(AttendanceError):
    status_code = 409
    default_message = "Attendance already marked for this session"

    def __init__(self, message: str = None, existing_record=None):
        super().__init__(message)
        self.existing_record = existing_record


class BiometricNotRegistered(AttendanceError):
    default_message = "Face not registered. Please register your face first."


class MissingProof(AttendanceError):
    default_message = "Face embedding is required for biometric attendance"


class LowConfidence(AttendanceError):
    default_message = "Face recognition confidence too low. Please try again."


class DimensionMismatch(AttendanceError):
    default_message = "Embeddings must have the same length"


class NotFound(AttendanceError):
    status_code = 404
    default_message = "Resource not found"
