"""Roles, per-operation authorization rules and the status state machine."""

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any
from uuid import UUID

from app.core.exceptions import ForbiddenException, ValidationException
from app.schemas.appointments import AppointmentStatus


class Role(str, Enum):
    """Closed set of caller roles."""

    PATIENT = "patient"
    PROVIDER = "provider"
    ADMIN = "admin"


@dataclass(frozen=True)
class Caller:
    """Authenticated identity as handed over by the auth layer."""

    user_id: UUID
    role: Role


# Providers may cancel appointments they do not own. Kept as an explicit
# policy switch; flip to restrict providers to their own bookings.
PROVIDERS_MAY_CANCEL_ANY_APPOINTMENT = True

ALLOWED_TRANSITIONS: dict[AppointmentStatus, frozenset[AppointmentStatus]] = {
    AppointmentStatus.SCHEDULED: frozenset(
        {AppointmentStatus.CONFIRMED, AppointmentStatus.CANCELLED, AppointmentStatus.NO_SHOW}
    ),
    AppointmentStatus.CONFIRMED: frozenset(
        {AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED, AppointmentStatus.NO_SHOW}
    ),
    AppointmentStatus.COMPLETED: frozenset(),
    AppointmentStatus.CANCELLED: frozenset(),
    AppointmentStatus.NO_SHOW: frozenset(),
}

ACCESS_DENIED = "Access denied"


def is_terminal(status: AppointmentStatus) -> bool:
    """Whether no transition leaves ``status``."""
    return not ALLOWED_TRANSITIONS[status]


def can_transition(current: AppointmentStatus, target: AppointmentStatus) -> bool:
    """Whether moving from ``current`` to ``target`` is legal; staying put always is."""
    return current == target or target in ALLOWED_TRANSITIONS[current]


def ensure_transition(current: AppointmentStatus, target: AppointmentStatus) -> None:
    """
    Raise unless ``current`` may move to ``target``.

    Raises:
        ValidationException: If the transition is not in the table
    """
    if not can_transition(current, target):
        raise ValidationException(
            f"Cannot change appointment status from {current.value} to {target.value}"
        )


def _unknown_role(caller: Caller) -> ForbiddenException:
    return ForbiddenException(f"Unknown role: {caller.role!s}")


def _owns(caller: Caller, appointment: Mapping[str, Any], column: str) -> bool:
    return str(appointment[column]) == str(caller.user_id)


def authorize_read(caller: Caller, appointment: Mapping[str, Any]) -> None:
    """
    Patients and providers may only read their own appointments.

    Raises:
        ForbiddenException: If the caller is not a party to the appointment
    """
    match caller.role:
        case Role.PATIENT:
            allowed = _owns(caller, appointment, "patient_id")
        case Role.PROVIDER:
            allowed = _owns(caller, appointment, "provider_id")
        case Role.ADMIN:
            allowed = True
        case _:
            raise _unknown_role(caller)

    if not allowed:
        raise ForbiddenException(ACCESS_DENIED)


def authorize_update(
    caller: Caller,
    appointment: Mapping[str, Any],
    changes: Mapping[str, Any],
) -> None:
    """
    Same ownership rule as reads; patients additionally cannot touch status.

    Raises:
        ForbiddenException: If the caller may not apply ``changes``
    """
    authorize_read(caller, appointment)

    if caller.role is Role.PATIENT and changes.get("status") is not None:
        raise ForbiddenException("Patients cannot update appointment status")


def authorize_cancel(caller: Caller, appointment: Mapping[str, Any]) -> None:
    """
    Patients may cancel only their own appointments.

    Providers are governed by ``PROVIDERS_MAY_CANCEL_ANY_APPOINTMENT``.

    Raises:
        ForbiddenException: If the caller may not cancel the appointment
    """
    match caller.role:
        case Role.PATIENT:
            allowed = _owns(caller, appointment, "patient_id")
        case Role.PROVIDER:
            allowed = PROVIDERS_MAY_CANCEL_ANY_APPOINTMENT or _owns(
                caller, appointment, "provider_id"
            )
        case Role.ADMIN:
            allowed = True
        case _:
            raise _unknown_role(caller)

    if not allowed:
        raise ForbiddenException(ACCESS_DENIED)
