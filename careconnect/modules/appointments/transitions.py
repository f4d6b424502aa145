"""Appointment status transition table."""

from careconnect.core.exceptions import InvalidTransitionError, PermissionDeniedError
from careconnect.shared.enums import AppointmentStatus, UserRole

TRANSITIONS: dict[AppointmentStatus, frozenset[AppointmentStatus]] = {
    AppointmentStatus.PENDING: frozenset({AppointmentStatus.CONFIRMED, AppointmentStatus.CANCELLED}),
    AppointmentStatus.CONFIRMED: frozenset(
        {AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED, AppointmentStatus.RESCHEDULED}
    ),
    AppointmentStatus.COMPLETED: frozenset(),
    AppointmentStatus.CANCELLED: frozenset(),
    AppointmentStatus.RESCHEDULED: frozenset(),
}

# Who may move an appointment into each target state, relative to the appointment.
ALLOWED_ACTORS: dict[AppointmentStatus, frozenset[UserRole]] = {
    AppointmentStatus.CONFIRMED: frozenset({UserRole.PROVIDER, UserRole.ADMIN}),
    AppointmentStatus.COMPLETED: frozenset({UserRole.PROVIDER, UserRole.ADMIN}),
    AppointmentStatus.CANCELLED: frozenset({UserRole.PATIENT, UserRole.PROVIDER, UserRole.ADMIN}),
    AppointmentStatus.RESCHEDULED: frozenset({UserRole.PATIENT, UserRole.PROVIDER, UserRole.ADMIN}),
    AppointmentStatus.PENDING: frozenset(),
}

# Leaving these states hands the time slot back to the pool.
RELEASES_SLOT = frozenset({AppointmentStatus.CANCELLED, AppointmentStatus.RESCHEDULED})


def is_terminal(status: AppointmentStatus) -> bool:
    return not TRANSITIONS[status]


def ensure_transition(current: AppointmentStatus, target: AppointmentStatus, actor: UserRole) -> None:
    """Raise unless ``actor`` may move an appointment from ``current`` to ``target``."""
    if is_terminal(current):
        raise InvalidTransitionError(f"Appointment is already {current.value}")
    if target not in TRANSITIONS[current]:
        raise InvalidTransitionError(f"Cannot move appointment from {current.value} to {target.value}")
    if actor not in ALLOWED_ACTORS[target]:
        raise PermissionDeniedError(f"{actor.value} may not set appointment to {target.value}")
