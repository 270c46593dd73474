"""
Appointment operations.

Each function takes the caller's :class:`~clinic.services.scheduling.Principal`
plus raw request values, applies the scheduling rules in the order the
API promises and either returns model instances or raises
:class:`~clinic.errors.ClinicError`.
"""
from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional

from django.db import transaction
from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime

from clinic.errors import ClinicError, ErrorKind, raise_if
from clinic.models import Appointment, DoctorProfile, PatientProfile
from clinic.services import scheduling as rules
from clinic.services.audit import log_action
from clinic.services.scheduling import Principal

logger = logging.getLogger(__name__)


def _with_people(qs):
    return qs.select_related('patient__user', 'doctor__user')


def parse_day(value) -> Optional[date]:
    """Accept ``YYYY-MM-DD`` or a full ISO timestamp (its local date is used)."""
    if value in (None, ''):
        return None
    if isinstance(value, datetime):
        return timezone.localtime(value).date() if timezone.is_aware(value) else value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    try:
        parsed = parse_date(text)
        if parsed is not None:
            return parsed
        moment = parse_datetime(text)
    except ValueError:
        moment = None
    if moment is None:
        raise ClinicError(ErrorKind.INVALID_DATE)
    return timezone.localtime(moment).date() if timezone.is_aware(moment) else moment.date()


def parse_moment(value) -> datetime:
    """ISO date-time from the request; naive values are in the clinic time zone."""
    if isinstance(value, datetime):
        moment = value
    else:
        try:
            moment = parse_datetime(str(value or '').strip())
        except ValueError:
            moment = None
    if moment is None:
        raise ClinicError(ErrorKind.INVALID_DATE, 'Invalid appointment date')
    if timezone.is_naive(moment):
        moment = timezone.make_aware(moment)
    return moment


def _load(appointment_id, *, lock: bool = False) -> Appointment:
    pk = rules.parse_uuid(appointment_id)
    if pk is None:
        raise ClinicError(ErrorKind.INVALID_ID, 'Invalid appointment ID')
    qs = Appointment.objects.select_for_update() if lock else _with_people(Appointment.objects.all())
    appointment = qs.filter(pk=pk).first()
    if appointment is None:
        raise ClinicError(ErrorKind.NOT_FOUND, 'Appointment not found')
    return appointment


def _lock_doctor(doctor_id) -> None:
    # Serialises conflict-check-then-write per doctor on backends with row locks
    DoctorProfile.objects.select_for_update().filter(pk=doctor_id).first()


# ---------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------
def list_appointments(principal: Principal, *, status=None, day=None, doctor_id=None) -> list[Appointment]:
    raise_if(rules.missing_profile_error(principal))
    qs = rules.visible_appointments(
        principal,
        _with_people(Appointment.objects.all()),
        status=status,
        day=parse_day(day),
        doctor_id=rules.parse_uuid(doctor_id) if doctor_id else None,
    )
    return list(qs)


def get_appointment(principal: Principal, appointment_id) -> Appointment:
    appointment = _load(appointment_id)
    raise_if(rules.authorization_error(principal, rules.VIEW, appointment=appointment))
    return appointment


def available_slots(doctor_id, day) -> list[dict]:
    pk = rules.parse_uuid(doctor_id) if doctor_id else None
    if pk is None:
        raise ClinicError(ErrorKind.INVALID_DOCTOR_ID)
    target = parse_day(day)
    if target is None:
        raise ClinicError(ErrorKind.INVALID_DATE, 'A date is required')
    if not DoctorProfile.objects.filter(pk=pk).exists():
        raise ClinicError(ErrorKind.DOCTOR_NOT_FOUND)
    return rules.enumerate_slots(rules.booked_starts(pk, target))


# ---------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------
def create_appointment(principal: Principal, *, patient_id, doctor_id, appointment_date,
                       reason: str = '', notes: str = '') -> Appointment:
    raise_if(rules.role_error(principal, rules.CREATE))

    patient_pk = rules.parse_uuid(patient_id) if patient_id else None
    if patient_pk is None:
        raise ClinicError(ErrorKind.INVALID_PATIENT_ID)
    doctor_pk = rules.parse_uuid(doctor_id) if doctor_id else None
    if doctor_pk is None:
        raise ClinicError(ErrorKind.INVALID_DOCTOR_ID)
    appointment_date = parse_moment(appointment_date)
    if not PatientProfile.objects.filter(pk=patient_pk).exists():
        raise ClinicError(ErrorKind.PATIENT_NOT_FOUND)
    if not DoctorProfile.objects.filter(pk=doctor_pk).exists():
        raise ClinicError(ErrorKind.DOCTOR_NOT_FOUND)

    raise_if(rules.authorization_error(principal, rules.CREATE, patient_id=patient_pk))

    with transaction.atomic():
        _lock_doctor(doctor_pk)
        raise_if(rules.slot_error(doctor_pk, appointment_date))
        appointment = Appointment.objects.create(
            patient_id=patient_pk,
            doctor_id=doctor_pk,
            appointment_date=appointment_date,
            reason=reason or '',
            notes=notes or '',
            status=Appointment.STATUS_SCHEDULED,
            created_by_id=principal.subject_id,
        )
        log_action(user_id=principal.subject_id, action='appointment_create', object_type='appointment',
                   object_id=appointment.id, detail={'doctorId': str(doctor_pk), 'patientId': str(patient_pk)})

    logger.info('Appointment %s booked for doctor %s at %s by %s',
                appointment.id, doctor_pk, appointment_date.isoformat(), principal.role)
    return _with_people(Appointment.objects.all()).get(pk=appointment.pk)


def reschedule_appointment(principal: Principal, appointment_id, new_date) -> Appointment:
    raise_if(rules.role_error(principal, rules.RESCHEDULE))
    if rules.parse_uuid(appointment_id) is None:
        raise ClinicError(ErrorKind.INVALID_ID, 'Invalid appointment ID')
    new_date = parse_moment(new_date)
    with transaction.atomic():
        appointment = _load(appointment_id, lock=True)
        raise_if(rules.authorization_error(principal, rules.RESCHEDULE, appointment=appointment))
        kind = rules.reschedule_error(appointment)
        if kind is ErrorKind.ALREADY_COMPLETED:
            raise ClinicError(kind, 'Cannot reschedule a completed appointment')
        if kind is ErrorKind.ALREADY_CANCELLED:
            raise ClinicError(kind, 'Cannot reschedule a cancelled appointment')

        _lock_doctor(appointment.doctor_id)
        raise_if(rules.slot_error(appointment.doctor_id, new_date, exclude_id=appointment.pk),
                 'The requested time slot is already booked.')
        previous = appointment.appointment_date
        appointment.appointment_date = new_date
        appointment.save(update_fields=['appointment_date', 'updated_at'])
        log_action(user_id=principal.subject_id, action='appointment_reschedule', object_type='appointment',
                   object_id=appointment.id, detail={'from': previous.isoformat(), 'to': new_date.isoformat()})

    logger.info('Appointment %s moved to %s', appointment.id, new_date.isoformat())
    return _with_people(Appointment.objects.all()).get(pk=appointment.pk)


def set_status(principal: Principal, appointment_id, status_value) -> Appointment:
    """Overwrite the status once authorised; terminal states are not re-checked."""
    raise_if(rules.role_error(principal, rules.SET_STATUS))
    if rules.parse_uuid(appointment_id) is None:
        raise ClinicError(ErrorKind.INVALID_ID, 'Invalid appointment ID')
    new_status = rules.parse_status(status_value)
    if new_status is None:
        raise ClinicError(ErrorKind.INVALID_STATUS)

    with transaction.atomic():
        appointment = _load(appointment_id, lock=True)
        raise_if(rules.authorization_error(principal, rules.SET_STATUS, appointment=appointment))
        previous = appointment.status
        appointment.status = new_status
        fields = ['status', 'updated_at']
        if new_status == Appointment.STATUS_CANCELLED and appointment.cancelled_at is None:
            appointment.cancelled_at = timezone.now()
            fields.append('cancelled_at')
        appointment.save(update_fields=fields)
        log_action(user_id=principal.subject_id, action='appointment_status', object_type='appointment',
                   object_id=appointment.id, detail={'from': previous, 'to': new_status})

    logger.info('Appointment %s status %s -> %s', appointment.id, previous, new_status)
    return _with_people(Appointment.objects.all()).get(pk=appointment.pk)


def complete_appointment(principal: Principal, appointment_id, doctor_notes: str = '') -> Appointment:
    """Mark completed with the doctor's notes.  Repeating the call just replaces the notes."""
    raise_if(rules.role_error(principal, rules.COMPLETE))
    with transaction.atomic():
        appointment = _load(appointment_id, lock=True)
        raise_if(rules.authorization_error(principal, rules.COMPLETE, appointment=appointment))
        appointment.status = Appointment.STATUS_COMPLETED
        appointment.doctor_notes = doctor_notes or ''
        appointment.save(update_fields=['status', 'doctor_notes', 'updated_at'])
        log_action(user_id=principal.subject_id, action='appointment_complete', object_type='appointment',
                   object_id=appointment.id)

    logger.info('Appointment %s completed', appointment.id)
    return _with_people(Appointment.objects.all()).get(pk=appointment.pk)


def cancel_appointment(principal: Principal, appointment_id) -> Appointment:
    raise_if(rules.role_error(principal, rules.CANCEL))
    with transaction.atomic():
        appointment = _load(appointment_id, lock=True)
        raise_if(rules.authorization_error(principal, rules.CANCEL, appointment=appointment))
        kind = rules.cancel_error(appointment)
        if kind is ErrorKind.ALREADY_COMPLETED:
            raise ClinicError(kind, 'Cannot cancel a completed appointment')
        raise_if(kind)
        appointment.status = Appointment.STATUS_CANCELLED
        appointment.cancelled_at = timezone.now()
        appointment.save(update_fields=['status', 'cancelled_at', 'updated_at'])
        log_action(user_id=principal.subject_id, action='appointment_cancel', object_type='appointment',
                   object_id=appointment.id)

    logger.info('Appointment %s cancelled by %s', appointment.id, principal.role)
    return appointment
