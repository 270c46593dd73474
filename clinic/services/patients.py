import logging

from django.db.models import Q

from clinic.errors import ClinicError, ErrorKind
from clinic.models import Appointment, PatientProfile, User
from clinic.services.accounts import create_user_with_profile
from clinic.services.audit import log_action
from clinic.services.scheduling import Principal, parse_uuid

logger = logging.getLogger(__name__)


def search_patients(search: str | None = None):
    qs = PatientProfile.objects.select_related('user')
    term = (search or '').strip()
    if term:
        qs = qs.filter(
            Q(user__first_name__icontains=term)
            | Q(user__last_name__icontains=term)
            | Q(user__email__icontains=term)
        )
    return qs.order_by('user__last_name', 'user__first_name')


def get_patient(patient_id) -> PatientProfile:
    pk = parse_uuid(patient_id)
    if pk is None:
        raise ClinicError(ErrorKind.INVALID_ID, 'Invalid patient ID')
    patient = PatientProfile.objects.select_related('user').filter(pk=pk).first()
    if patient is None:
        raise ClinicError(ErrorKind.NOT_FOUND, 'Patient not found')
    return patient


def _check_access(principal: Principal, patient: PatientProfile) -> None:
    # Patients reach only their own record; staff reach any
    if principal.role == User.ROLE_PATIENT and patient.user_id != principal.subject_id:
        raise ClinicError(ErrorKind.FORBIDDEN)


def patient_for(principal: Principal, patient_id) -> PatientProfile:
    patient = get_patient(patient_id)
    _check_access(principal, patient)
    return patient


def create_patient(actor: User, **fields) -> PatientProfile:
    user = create_user_with_profile(role=User.ROLE_PATIENT, is_active=True, **fields)
    log_action(user_id=actor.id, action='patient_create', object_type='patient',
               object_id=user.patient_profile.id)
    logger.info('Clerk %s created patient %s', actor.email, user.email)
    return PatientProfile.objects.select_related('user').get(user=user)


def update_patient(principal: Principal, patient_id, data: dict) -> PatientProfile:
    patient = patient_for(principal, patient_id)
    user = patient.user
    for attr in ('first_name', 'last_name', 'phone'):
        if data.get(attr) is not None:
            setattr(user, attr, data[attr])
    user.save()
    if 'date_of_birth' in data:
        patient.date_of_birth = data['date_of_birth']
        patient.save(update_fields=['date_of_birth'])
    log_action(user_id=principal.subject_id, action='patient_update', object_type='patient',
               object_id=patient.id)
    return patient


def update_notes(principal: Principal, patient_id, notes: str) -> PatientProfile:
    patient = get_patient(patient_id)
    patient.doctor_notes = notes or ''
    patient.save(update_fields=['doctor_notes'])
    log_action(user_id=principal.subject_id, action='patient_notes', object_type='patient',
               object_id=patient.id)
    return patient


def deactivate_patient(actor: User, patient_id) -> PatientProfile:
    patient = get_patient(patient_id)
    patient.user.is_active = False
    patient.user.save(update_fields=['is_active', 'updated_at'])
    log_action(user_id=actor.id, action='patient_deactivate', object_type='patient', object_id=patient.id)
    logger.info('Patient %s deactivated by %s', patient.user.email, actor.email)
    return patient


def medical_history(patient_id) -> tuple[PatientProfile, list[Appointment]]:
    """Completed appointments of the patient, newest first."""
    patient = get_patient(patient_id)
    records = list(
        Appointment.objects.filter(patient=patient, status=Appointment.STATUS_COMPLETED)
        .select_related('doctor__user')
        .order_by('-appointment_date')
    )
    return patient, records
