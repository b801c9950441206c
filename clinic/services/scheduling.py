"""
Scheduling rules shared by the doctor and appointment services.

Everything here is pure: callers load doctors and appointments and pass them
in. Appointment instants are naive local datetimes, as stored.
"""
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Iterable, List, Optional, Sequence, Tuple

from ..models.appointment import AppointmentStatus

class ValidationReason(str, Enum):
    PAST_OR_PRESENT = "past_or_present"
    OUT_OF_RANGE = "out_of_range"

class AppointmentValidationError(ValueError):
    """An appointment violates a scheduling invariant."""

    def __init__(self, reason: ValidationReason, message: str):
        self.reason = reason
        super().__init__(message)

def to_local_naive(instant: datetime) -> datetime:
    """Aware datetimes are converted to local wall-clock time."""
    if instant.tzinfo is not None:
        return instant.astimezone().replace(tzinfo=None)
    return instant

def validate_appointment_timing(instant: datetime, now: Optional[datetime] = None) -> datetime:
    """Return the normalized instant, or raise if it is not strictly in the future."""
    instant = to_local_naive(instant)
    current = to_local_naive(now) if now is not None else datetime.now()
    if instant <= current:
        raise AppointmentValidationError(
            ValidationReason.PAST_OR_PRESENT,
            "Appointment time must be in the future",
        )
    return instant

def validate_status(value) -> AppointmentStatus:
    # bool is an int subclass but never a valid status
    if isinstance(value, bool) or not isinstance(value, int):
        raise AppointmentValidationError(ValidationReason.OUT_OF_RANGE, "Status must be 0 or 1")
    try:
        return AppointmentStatus(value)
    except ValueError:
        raise AppointmentValidationError(ValidationReason.OUT_OF_RANGE, "Status must be 0 or 1")

def validate_new_status(value: Optional[int]) -> AppointmentStatus:
    """New bookings start Scheduled; any other supplied status is refused."""
    if value is None:
        return AppointmentStatus.SCHEDULED
    status = validate_status(value)
    if status != AppointmentStatus.SCHEDULED:
        raise AppointmentValidationError(
            ValidationReason.OUT_OF_RANGE,
            "New appointments must have status 0 (scheduled)",
        )
    return status

def day_bounds(day: date) -> Tuple[datetime, datetime]:
    """Half-open [start, end) range covering one calendar day."""
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)

def slot_start(label: str) -> str:
    """Start of a slot label: "09:00-10:00" -> "09:00"."""
    return label.split("-", 1)[0].strip()

def time_label(value: time) -> str:
    return value.strftime("%H:%M")

def parse_slot_time(label: str) -> Optional[time]:
    try:
        return datetime.strptime(slot_start(label), "%H:%M").time()
    except ValueError:
        return None

def compute_available_slots(configured: Optional[Sequence[str]], booked_times: Iterable[datetime]) -> List[str]:
    """
    Subtract booked appointment times from a doctor's configured slot labels.

    A label is taken when its start matches the HH:MM of a booked instant.
    Scheduled and completed appointments both occupy their slot. The result
    keeps the configured order.
    """
    if not configured:
        return []

    taken = {time_label(to_local_naive(instant).time()) for instant in booked_times}
    return [label for label in configured if slot_start(label) not in taken]

def slots_in_period(configured: Optional[Sequence[str]], period: str) -> List[str]:
    """Labels starting in the morning ("AM") or from noon on ("PM")."""
    period = period.strip().upper()
    result = []
    for label in configured or []:
        start = parse_slot_time(label)
        if start is None:
            continue
        if (period == "AM" and start.hour < 12) or (period == "PM" and start.hour >= 12):
            result.append(label)
    return result
