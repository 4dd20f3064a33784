# appointments/services/__init__.py

from .exceptions import (
    AppointmentServiceError,
    AppointmentValidationError,
    BookingPolicyViolation,
    OutsideBookingWindowError,
    DoctorUnavailableError,
    SlotTakenError,
    AppointmentNotFoundError,
    AppointmentAccessDeniedError,
    AppointmentStateError,
    SlotConflictError,
    AppointmentStorageError,
)
from .booking_policy import BookingPolicy
from .ledger_service import SlotLedgerService
from .services import (
    AppointmentBookingService,
    AppointmentManagementService,
    AppointmentAnalyticsService,
    compute_user_stats,
)
from .expiry_service import AppointmentExpiryService
