"""
Appointment scheduling rules.

Everything here is a plain function over explicit inputs: the caller's
:class:`Principal`, appointment rows and query sets.  Checks return an
:class:`~clinic.errors.ErrorKind` (or ``None`` when the rule passes) and
never touch the request.  ``clinic.services.appointments`` strings the
rules together and raises.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Iterable, Optional

from django.conf import settings
from django.db.models import QuerySet
from django.utils import timezone

from clinic.errors import ClinicError, ErrorKind
from clinic.models import Appointment, User

PATIENT, DOCTOR, CLERK = User.ROLE_PATIENT, User.ROLE_DOCTOR, User.ROLE_CLERK


# ---------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class Principal:
    role: str
    subject_id: uuid.UUID
    # id of the caller's own patient/doctor/clerk profile
    role_scoped_id: Optional[uuid.UUID]


def parse_uuid(value) -> Optional[uuid.UUID]:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value).strip())
    except (TypeError, ValueError, AttributeError):
        return None


def resolve_principal(user, claims=None) -> Principal:
    """Build the caller's principal from the user row and token claims.

    ``claims`` is the validated access token (or ``None`` for sessions
    and test clients).  A token whose role or role-scoped id disagrees
    with the database is refused.
    """
    profile = user.profile
    scoped_id = profile.id if profile is not None else None
    if claims is not None:
        claimed_role = claims.get('role')
        if claimed_role and claimed_role != user.role:
            raise ClinicError(ErrorKind.FORBIDDEN, 'Token role does not match the account')
        claimed_id = claims.get('roleSpecificId')
        if claimed_id:
            parsed = parse_uuid(claimed_id)
            if parsed is None or parsed != scoped_id:
                raise ClinicError(ErrorKind.FORBIDDEN, 'Token identity does not match the account')
    return Principal(role=user.role, subject_id=user.id, role_scoped_id=scoped_id)


def principal_for_request(request) -> Principal:
    return resolve_principal(request.user, request.auth)


def missing_profile_error(principal: Principal) -> Optional[ErrorKind]:
    if principal.role_scoped_id is not None:
        return None
    if principal.role == PATIENT:
        return ErrorKind.PATIENT_NOT_FOUND
    if principal.role == DOCTOR:
        return ErrorKind.DOCTOR_NOT_FOUND
    return None


# ---------------------------------------------------------------------
# Time helpers
# ---------------------------------------------------------------------
def slot_length() -> timedelta:
    return timedelta(minutes=settings.CLINIC_SLOT_MINUTES)


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """Half-open ``[start, end)`` of a calendar day in the clinic time zone."""
    start = timezone.make_aware(datetime.combine(day, time.min))
    end = timezone.make_aware(datetime.combine(day + timedelta(days=1), time.min))
    return start, end


def parse_status(value) -> Optional[str]:
    """Case-insensitive match against the appointment status names."""
    if not value:
        return None
    wanted = str(value).strip().lower()
    for code, _label in Appointment.STATUS_CHOICES:
        if code.lower() == wanted:
            return code
    return None


# ---------------------------------------------------------------------
# Visibility
# ---------------------------------------------------------------------
def visible_appointments(principal: Principal, qs: QuerySet | None = None, *,
                         status: Optional[str] = None, day: Optional[date] = None,
                         doctor_id: Optional[uuid.UUID] = None) -> QuerySet:
    """Narrow ``qs`` to what ``principal`` may list.

    Patients and doctors only ever see their own appointments;
    ``doctor_id`` is honoured for clerks alone.  ``status`` is a raw
    query value and is ignored when it does not name a status.
    """
    qs = Appointment.objects.all() if qs is None else qs
    if principal.role == PATIENT:
        qs = qs.filter(patient_id=principal.role_scoped_id)
    elif principal.role == DOCTOR:
        qs = qs.filter(doctor_id=principal.role_scoped_id)
    elif principal.role == CLERK:
        if doctor_id is not None:
            qs = qs.filter(doctor_id=doctor_id)
    else:
        return qs.none()

    wanted_status = parse_status(status)
    if wanted_status:
        qs = qs.filter(status=wanted_status)
    if day is not None:
        start, end = day_bounds(day)
        qs = qs.filter(appointment_date__gte=start, appointment_date__lt=end)
    return qs.order_by('appointment_date')


# ---------------------------------------------------------------------
# Conflicts & slots
# ---------------------------------------------------------------------
def conflicting_appointments(doctor_id, start: datetime, exclude_id=None) -> QuerySet:
    """Scheduled appointments of the doctor overlapping ``[start, start+slot)``.

    Every appointment is treated as one slot long, so the overlap test
    ``existing < start + slot and existing + slot > start`` becomes a
    window on ``appointment_date``.
    """
    slot = slot_length()
    qs = Appointment.objects.filter(
        doctor_id=doctor_id,
        status=Appointment.STATUS_SCHEDULED,
        appointment_date__lt=start + slot,
        appointment_date__gt=start - slot,
    )
    if exclude_id is not None:
        qs = qs.exclude(pk=exclude_id)
    return qs


def slot_error(doctor_id, start: datetime, exclude_id=None) -> Optional[ErrorKind]:
    if conflicting_appointments(doctor_id, start, exclude_id).exists():
        return ErrorKind.SLOT_UNAVAILABLE
    return None


def booked_starts(doctor_id, day: date) -> list[datetime]:
    start, end = day_bounds(day)
    return list(
        Appointment.objects.filter(
            doctor_id=doctor_id,
            status=Appointment.STATUS_SCHEDULED,
            appointment_date__gte=start,
            appointment_date__lt=end,
        ).values_list('appointment_date', flat=True)
    )


def enumerate_slots(booked: Iterable[datetime]) -> list[dict]:
    """Fixed day grid with an availability flag per slot.

    A slot is taken only when a booking starts exactly on it; bookings
    that start between grid points do not mark any slot.
    """
    taken = set()
    for starts_at in booked:
        local = timezone.localtime(starts_at) if timezone.is_aware(starts_at) else starts_at
        taken.add((local.hour, local.minute))
    slots = []
    for hour in range(settings.CLINIC_DAY_START_HOUR, settings.CLINIC_DAY_END_HOUR):
        for minute in range(0, 60, settings.CLINIC_SLOT_MINUTES):
            slots.append({'time': f'{hour:02d}:{minute:02d}', 'available': (hour, minute) not in taken})
    return slots


# ---------------------------------------------------------------------
# Status transitions
# ---------------------------------------------------------------------
def reschedule_error(appointment: Appointment) -> Optional[ErrorKind]:
    if appointment.status == Appointment.STATUS_COMPLETED:
        return ErrorKind.ALREADY_COMPLETED
    if appointment.status == Appointment.STATUS_CANCELLED:
        return ErrorKind.ALREADY_CANCELLED
    return None


def cancel_error(appointment: Appointment) -> Optional[ErrorKind]:
    if appointment.status == Appointment.STATUS_CANCELLED:
        return ErrorKind.ALREADY_CANCELLED
    if appointment.status == Appointment.STATUS_COMPLETED:
        return ErrorKind.ALREADY_COMPLETED
    return None


# ---------------------------------------------------------------------
# Authorization
# ---------------------------------------------------------------------
VIEW = 'view'
CREATE = 'create'
RESCHEDULE = 'reschedule'
SET_STATUS = 'set_status'
COMPLETE = 'complete'
CANCEL = 'cancel'

OWN = 'own'
ANY = 'any'

ROLE_MATRIX: dict[str, dict[str, str]] = {
    VIEW: {PATIENT: OWN, DOCTOR: OWN, CLERK: ANY},
    CREATE: {PATIENT: OWN, CLERK: ANY},
    RESCHEDULE: {PATIENT: OWN, DOCTOR: OWN, CLERK: ANY},
    SET_STATUS: {DOCTOR: OWN, CLERK: ANY},
    COMPLETE: {DOCTOR: OWN},
    CANCEL: {PATIENT: OWN, CLERK: ANY},
}


def role_error(principal: Principal, action: str) -> Optional[ErrorKind]:
    """Whether the role may attempt ``action`` at all."""
    if principal.role not in ROLE_MATRIX[action]:
        return ErrorKind.FORBIDDEN
    return None


def authorization_error(principal: Principal, action: str, *,
                        appointment: Appointment | None = None,
                        patient_id=None) -> Optional[ErrorKind]:
    """Role matrix plus ownership.

    For ``CREATE`` there is no appointment yet; pass the target
    ``patient_id`` instead.
    """
    scope = ROLE_MATRIX[action].get(principal.role)
    if scope is None:
        return ErrorKind.FORBIDDEN
    if scope == ANY:
        return None
    if principal.role_scoped_id is None:
        return ErrorKind.FORBIDDEN
    if principal.role == PATIENT:
        owner = appointment.patient_id if appointment is not None else patient_id
    else:
        owner = appointment.doctor_id if appointment is not None else None
    return None if owner == principal.role_scoped_id else ErrorKind.FORBIDDEN
