# appointments/services/exceptions.py
"""
Appointment service exceptions. Views translate them to HTTP responses.
"""


class AppointmentServiceError(Exception):
    """Base exception for appointment service related errors"""
    pass


class AppointmentValidationError(AppointmentServiceError):
    """Raised when a date-key or time label is malformed"""
    pass


class BookingPolicyViolation(AppointmentServiceError):
    """Raised when a well-formed booking request breaks a booking rule"""
    reason = 'policy_violation'


class OutsideBookingWindowError(BookingPolicyViolation):
    """Raised when the requested date is too soon or too far ahead"""
    reason = 'outside_booking_window'


class DoctorUnavailableError(BookingPolicyViolation):
    """Raised when the doctor is not accepting bookings"""
    reason = 'doctor_unavailable'


class SlotTakenError(BookingPolicyViolation):
    """Raised when the time label is already booked for that doctor and day"""
    reason = 'slot_taken'


class AppointmentNotFoundError(AppointmentServiceError):
    """Raised when appointment is not found"""
    pass


class AppointmentAccessDeniedError(AppointmentServiceError):
    """Raised when user doesn't have access to appointment"""
    pass


class AppointmentStateError(AppointmentServiceError):
    """Raised when a transition is not allowed from the current state"""
    pass


class SlotConflictError(AppointmentServiceError):
    """Raised when a ledger write loses a race or cannot obtain the doctor lock"""
    pass


class AppointmentStorageError(AppointmentServiceError):
    """Raised when the database fails underneath an appointment operation"""
    pass
