"""Explicit attendance policy handed to the core services."""
from dataclasses import dataclass
from datetime import timedelta
from typing import Mapping, Any


@dataclass(frozen=True)
class AttendancePolicy:
    """Thresholds and time windows governing tickets and admission."""

    admission_threshold: float = 0.6
    verified_threshold: float = 0.8
    expiry_buffer: timedelta = timedelta(minutes=30)
    late_after: timedelta = timedelta(minutes=15)
    embedding_dimensions: int = 128
    default_capacity: int = 100

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> 'AttendancePolicy':
        """Build a policy from a Flask config mapping."""
        defaults = cls()
        return cls(
            admission_threshold=float(config.get('FACE_RECOGNITION_THRESHOLD', defaults.admission_threshold)),
            verified_threshold=float(config.get('FACE_VERIFIED_THRESHOLD', defaults.verified_threshold)),
            expiry_buffer=timedelta(minutes=int(config.get('TICKET_EXPIRY_BUFFER_MINUTES', 30))),
            late_after=timedelta(minutes=int(config.get('LATE_THRESHOLD_MINUTES', 15))),
            embedding_dimensions=int(config.get('FACE_EMBEDDING_DIMENSIONS', defaults.embedding_dimensions)),
            default_capacity=int(config.get('DEFAULT_SESSION_CAPACITY', defaults.default_capacity)),
        )
