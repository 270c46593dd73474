"""
Account lifecycle: login, registration, approval and passwords.
"""
from __future__ import annotations

import logging

from django.conf import settings
from django.contrib.auth.password_validation import validate_password
from django.contrib.auth.tokens import default_token_generator
from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.mail import send_mail
from django.db import transaction
from django.db.models import ProtectedError
from django.utils import timezone
from rest_framework_simplejwt.tokens import RefreshToken

from clinic.errors import ClinicError, ErrorKind
from clinic.models import ClerkProfile, DoctorProfile, PatientProfile, User
from clinic.services.audit import log_action
from clinic.services.scheduling import parse_uuid

logger = logging.getLogger(__name__)

DEFAULT_SPECIALIZATION = 'General Practitioner'


def issue_tokens(user: User) -> RefreshToken:
    """Refresh token whose access token carries the role claims."""
    refresh = RefreshToken.for_user(user)
    profile = user.profile
    refresh['role'] = user.role
    refresh['roleSpecificId'] = str(profile.id) if profile is not None else None
    return refresh


def login_payload(user: User, refresh: RefreshToken) -> dict:
    profile = user.profile
    return {
        'userId': str(user.id),
        'firstName': user.first_name,
        'lastName': user.last_name,
        'email': user.email,
        'role': user.role,
        'token': str(refresh.access_token),
        'refreshToken': str(refresh),
        'roleSpecificId': str(profile.id) if profile is not None else None,
    }


def check_password_strength(password: str, user: User | None = None) -> None:
    try:
        validate_password(password, user)
    except DjangoValidationError as e:
        raise ClinicError(ErrorKind.PASSWORD_TOO_SHORT, ' '.join(e.messages))


def login(email: str, password: str, *, ip: str | None = None) -> dict:
    user = User.objects.filter(email__iexact=(email or '').strip()).first()
    if user is None or not user.check_password(password):
        logger.warning('Failed login for %s from %s', email, ip or '-')
        log_action(action='login', object_type='user',
                   detail={'result': 'fail', 'email': email, 'ip': ip})
        raise ClinicError(ErrorKind.INVALID_CREDENTIALS)
    if not user.is_active:
        logger.warning('Login refused for inactive account %s', user.email)
        log_action(user_id=user.id, action='login', object_type='user', object_id=user.id,
                   detail={'result': 'inactive', 'ip': ip})
        raise ClinicError(ErrorKind.ACCOUNT_INACTIVE, 'Account is inactive. Please wait for approval.')

    user.last_login = timezone.now()
    user.save(update_fields=['last_login'])
    log_action(user_id=user.id, action='login', object_type='user', object_id=user.id,
               detail={'result': 'ok', 'ip': ip})
    logger.info('User %s logged in as %s', user.email, user.role)
    return login_payload(user, issue_tokens(user))


def create_user_with_profile(*, email: str, password: str, first_name: str, last_name: str,
                             role: str, phone: str = '', is_active: bool = True,
                             date_of_birth=None, address: str = '',
                             emergency_contact_name: str = '', emergency_contact_phone: str = '',
                             specialization: str | None = None, license_number: str = '',
                             years_of_experience: int | None = None, department: str = '') -> User:
    """Create a user and the single profile matching ``role``."""
    email = (email or '').strip().lower()
    if User.objects.filter(email__iexact=email).exists():
        raise ClinicError(ErrorKind.EMAIL_EXISTS)
    check_password_strength(password)

    with transaction.atomic():
        user = User.objects.create_user(
            email=email,
            password=password,
            first_name=first_name,
            last_name=last_name,
            phone=phone or '',
            role=role,
            is_active=is_active,
        )
        if role == User.ROLE_PATIENT:
            PatientProfile.objects.create(
                user=user,
                date_of_birth=date_of_birth,
                address=address or '',
                emergency_contact_name=emergency_contact_name or '',
                emergency_contact_phone=emergency_contact_phone or '',
            )
        elif role == User.ROLE_DOCTOR:
            DoctorProfile.objects.create(
                user=user,
                specialization=specialization or DEFAULT_SPECIALIZATION,
                license_number=license_number or '',
                years_of_experience=years_of_experience,
            )
        else:
            ClerkProfile.objects.create(user=user, department=department or '')
    return user


def register(*, actor_ip: str | None = None, **fields) -> User:
    """Public sign-up; the account stays inactive until a clerk approves it."""
    user = create_user_with_profile(is_active=False, **fields)
    log_action(user_id=user.id, action='register', object_type='user', object_id=user.id,
               detail={'role': user.role, 'ip': actor_ip})
    logger.info('Registered %s account %s, pending approval', user.role, user.email)
    return user


# ---------------------------------------------------------------------
# Clerk approval
# ---------------------------------------------------------------------
def _get_user(user_id) -> User:
    pk = parse_uuid(user_id)
    if pk is None:
        raise ClinicError(ErrorKind.INVALID_ID, 'Invalid user ID')
    user = User.objects.filter(pk=pk).first()
    if user is None:
        raise ClinicError(ErrorKind.NOT_FOUND, 'User not found')
    return user


def pending_users():
    return User.objects.filter(is_active=False).select_related(
        'patient_profile', 'doctor_profile', 'clerk_profile'
    ).order_by('date_joined')


def approve_user(actor: User, user_id) -> User:
    user = _get_user(user_id)
    if user.is_active:
        raise ClinicError(ErrorKind.ALREADY_ACTIVE)
    user.is_active = True
    user.save(update_fields=['is_active', 'updated_at'])
    log_action(user_id=actor.id, action='user_approve', object_type='user', object_id=user.id)
    logger.info('Clerk %s approved %s', actor.email, user.email)
    return user


def reject_user(actor: User, user_id) -> str:
    user = _get_user(user_id)
    if user.pk == actor.pk:
        raise ClinicError(ErrorKind.FORBIDDEN, 'You cannot reject your own account')
    email = user.email
    try:
        with transaction.atomic():
            profile = user.profile
            if profile is not None:
                profile.delete()
            user.delete()
            log_action(user_id=actor.id, action='user_reject', object_type='user', object_id=user_id,
                       detail={'email': email})
    except ProtectedError:
        raise ClinicError(ErrorKind.USER_HAS_APPOINTMENTS)
    logger.info('Clerk %s rejected %s', actor.email, email)
    return str(user_id)


PATIENT_PROFILE_FIELDS = ('date_of_birth', 'address', 'emergency_contact_name', 'emergency_contact_phone')


def update_profile(user: User, data: dict) -> User:
    """Apply the non-``None`` values of ``data`` to the user and, for patients, their profile."""
    for attr in ('first_name', 'last_name', 'phone'):
        if data.get(attr) is not None:
            setattr(user, attr, data[attr])
    user.save()
    profile = user.profile
    if user.role == User.ROLE_PATIENT and profile is not None:
        changed = [attr for attr in PATIENT_PROFILE_FIELDS if data.get(attr) is not None]
        for attr in changed:
            setattr(profile, attr, data[attr])
        if changed:
            profile.save(update_fields=changed)
    log_action(user_id=user.id, action='profile_update', object_type='user', object_id=user.id)
    return user


# ---------------------------------------------------------------------
# Passwords
# ---------------------------------------------------------------------
def _check_new_password(user: User, new_password: str, confirm_password: str) -> None:
    if new_password != confirm_password:
        raise ClinicError(ErrorKind.PASSWORD_MISMATCH)
    check_password_strength(new_password, user)


def change_password(user: User, current_password: str, new_password: str, confirm_password: str) -> None:
    if not user.check_password(current_password or ''):
        raise ClinicError(ErrorKind.INVALID_PASSWORD)
    _check_new_password(user, new_password, confirm_password)
    user.set_password(new_password)
    user.save(update_fields=['password', 'updated_at'])
    log_action(user_id=user.id, action='password_change', object_type='user', object_id=user.id)


def send_password_reset(email: str) -> None:
    """Mail a reset token when the account exists; silent otherwise."""
    user = User.objects.filter(email__iexact=(email or '').strip(), is_active=True).first()
    if user is None:
        logger.info('Password reset requested for unknown address %s', email)
        return
    token = default_token_generator.make_token(user)
    send_mail(
        subject='Clinic password reset',
        message=(
            f'Hello {user.first_name},\n\n'
            f'Use this code to reset your password: {token}\n\n'
            'If you did not ask for a reset you can ignore this message.'
        ),
        from_email=settings.DEFAULT_FROM_EMAIL,
        recipient_list=[user.email],
    )
    log_action(user_id=user.id, action='password_reset_request', object_type='user', object_id=user.id)


def reset_password(email: str, token: str, new_password: str, confirm_password: str) -> None:
    if new_password != confirm_password:
        raise ClinicError(ErrorKind.PASSWORD_MISMATCH)
    user = User.objects.filter(email__iexact=(email or '').strip()).first()
    check_password_strength(new_password, user)
    if user is None or not default_token_generator.check_token(user, token or ''):
        raise ClinicError(ErrorKind.INVALID_TOKEN)
    user.set_password(new_password)
    user.save(update_fields=['password', 'updated_at'])
    log_action(user_id=user.id, action='password_reset', object_type='user', object_id=user.id)
    logger.info('Password reset for %s', user.email)


def blacklist_refresh(raw_token: str) -> None:
    """Revoke a refresh token; raises simplejwt's ``TokenError`` if invalid."""
    RefreshToken(raw_token).blacklist()
