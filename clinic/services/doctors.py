"""
Doctor directory and clerk-side doctor management.
"""
import logging

from clinic.errors import ClinicError, ErrorKind
from clinic.models import DoctorProfile, User
from clinic.services.accounts import create_user_with_profile
from clinic.services.audit import log_action
from clinic.services.scheduling import parse_uuid

logger = logging.getLogger(__name__)


def list_doctors():
    return DoctorProfile.objects.select_related('user').filter(user__is_active=True).order_by(
        'user__last_name', 'user__first_name'
    )


def get_doctor(doctor_id) -> DoctorProfile:
    pk = parse_uuid(doctor_id)
    if pk is None:
        raise ClinicError(ErrorKind.INVALID_ID, 'Invalid doctor ID')
    doctor = DoctorProfile.objects.select_related('user').filter(pk=pk).first()
    if doctor is None:
        raise ClinicError(ErrorKind.NOT_FOUND, 'Doctor not found')
    return doctor


def create_doctor(actor: User, **fields) -> DoctorProfile:
    user = create_user_with_profile(role=User.ROLE_DOCTOR, is_active=True, **fields)
    log_action(user_id=actor.id, action='doctor_create', object_type='doctor', object_id=user.doctor_profile.id)
    logger.info('Clerk %s created doctor %s', actor.email, user.email)
    return DoctorProfile.objects.select_related('user').get(user=user)


def update_doctor(actor: User, doctor_id, data: dict) -> DoctorProfile:
    doctor = get_doctor(doctor_id)
    user = doctor.user
    for attr in ('first_name', 'last_name', 'phone', 'is_active'):
        if data.get(attr) is not None:
            setattr(user, attr, data[attr])
    user.save()
    for attr in ('specialization', 'license_number', 'years_of_experience'):
        if data.get(attr) is not None:
            setattr(doctor, attr, data[attr])
    doctor.save()
    log_action(user_id=actor.id, action='doctor_update', object_type='doctor', object_id=doctor.id)
    return doctor


def deactivate_doctor(actor: User, doctor_id) -> DoctorProfile:
    doctor = get_doctor(doctor_id)
    doctor.user.is_active = False
    doctor.user.save(update_fields=['is_active', 'updated_at'])
    log_action(user_id=actor.id, action='doctor_deactivate', object_type='doctor', object_id=doctor.id)
    logger.info('Doctor %s deactivated by %s', doctor.user.email, actor.email)
    return doctor
