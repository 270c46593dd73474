"""
Business error kinds and their HTTP mapping.

Rule and service functions report failures as an :class:`ErrorKind`.
``ClinicError`` carries one of those kinds out of a service call and
``clinic.exceptions.api_exception_handler`` turns it into a response
using :data:`ERROR_STATUS`, the only place where kinds meet status
codes.
"""
from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    INVALID_ID = 'INVALID_ID'
    INVALID_PATIENT_ID = 'INVALID_PATIENT_ID'
    INVALID_DOCTOR_ID = 'INVALID_DOCTOR_ID'
    INVALID_DATE = 'INVALID_DATE'
    INVALID_STATUS = 'INVALID_STATUS'
    INVALID_PASSWORD = 'INVALID_PASSWORD'
    INVALID_TOKEN = 'INVALID_TOKEN'
    PASSWORD_TOO_SHORT = 'PASSWORD_TOO_SHORT'
    PASSWORD_MISMATCH = 'PASSWORD_MISMATCH'
    EMAIL_EXISTS = 'EMAIL_EXISTS'
    ALREADY_ACTIVE = 'ALREADY_ACTIVE'
    ALREADY_COMPLETED = 'ALREADY_COMPLETED'
    ALREADY_CANCELLED = 'ALREADY_CANCELLED'
    USER_HAS_APPOINTMENTS = 'USER_HAS_APPOINTMENTS'
    SLOT_UNAVAILABLE = 'SLOT_UNAVAILABLE'
    NOT_FOUND = 'NOT_FOUND'
    PATIENT_NOT_FOUND = 'PATIENT_NOT_FOUND'
    DOCTOR_NOT_FOUND = 'DOCTOR_NOT_FOUND'
    INVALID_CREDENTIALS = 'INVALID_CREDENTIALS'
    ACCOUNT_INACTIVE = 'ACCOUNT_INACTIVE'
    FORBIDDEN = 'FORBIDDEN'


ERROR_STATUS: dict[ErrorKind, int] = {
    ErrorKind.INVALID_ID: 400,
    ErrorKind.INVALID_PATIENT_ID: 400,
    ErrorKind.INVALID_DOCTOR_ID: 400,
    ErrorKind.INVALID_DATE: 400,
    ErrorKind.INVALID_STATUS: 400,
    ErrorKind.INVALID_PASSWORD: 400,
    ErrorKind.INVALID_TOKEN: 400,
    ErrorKind.PASSWORD_TOO_SHORT: 400,
    ErrorKind.PASSWORD_MISMATCH: 400,
    ErrorKind.EMAIL_EXISTS: 400,
    ErrorKind.ALREADY_ACTIVE: 400,
    ErrorKind.ALREADY_COMPLETED: 400,
    ErrorKind.ALREADY_CANCELLED: 400,
    ErrorKind.USER_HAS_APPOINTMENTS: 400,
    ErrorKind.SLOT_UNAVAILABLE: 409,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.PATIENT_NOT_FOUND: 404,
    ErrorKind.DOCTOR_NOT_FOUND: 404,
    ErrorKind.INVALID_CREDENTIALS: 401,
    ErrorKind.ACCOUNT_INACTIVE: 401,
    ErrorKind.FORBIDDEN: 403,
}

DEFAULT_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.INVALID_ID: 'Invalid id',
    ErrorKind.INVALID_PATIENT_ID: 'Invalid patient ID',
    ErrorKind.INVALID_DOCTOR_ID: 'Invalid doctor ID',
    ErrorKind.INVALID_DATE: 'Invalid or missing date',
    ErrorKind.INVALID_STATUS: 'Invalid status value',
    ErrorKind.INVALID_PASSWORD: 'Current password is incorrect',
    ErrorKind.INVALID_TOKEN: 'Invalid or expired token',
    ErrorKind.PASSWORD_TOO_SHORT: 'Password is too short',
    ErrorKind.PASSWORD_MISMATCH: 'Passwords do not match',
    ErrorKind.EMAIL_EXISTS: 'Email already registered',
    ErrorKind.ALREADY_ACTIVE: 'User is already active',
    ErrorKind.ALREADY_COMPLETED: 'Appointment is already completed',
    ErrorKind.ALREADY_CANCELLED: 'Appointment is already cancelled',
    ErrorKind.USER_HAS_APPOINTMENTS: 'User still has appointments on record',
    ErrorKind.SLOT_UNAVAILABLE: 'This time slot is already booked. Please choose a different time.',
    ErrorKind.NOT_FOUND: 'Not found',
    ErrorKind.PATIENT_NOT_FOUND: 'Patient not found',
    ErrorKind.DOCTOR_NOT_FOUND: 'Doctor not found',
    ErrorKind.INVALID_CREDENTIALS: 'Invalid email or password',
    ErrorKind.ACCOUNT_INACTIVE: 'Account is inactive',
    ErrorKind.FORBIDDEN: 'You do not have permission to perform this action.',
}


class ClinicError(Exception):
    """A business rule failure that ends the current request."""

    def __init__(self, kind: ErrorKind, message: str | None = None):
        self.kind = kind
        self.message = message or DEFAULT_MESSAGES[kind]
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return ERROR_STATUS[self.kind]


def raise_if(kind: ErrorKind | None, message: str | None = None) -> None:
    """Raise ``ClinicError`` when a rule function reported a failure."""
    if kind is not None:
        raise ClinicError(kind, message)
