"""
Database models for the clinic backend.

A :class:`User` authenticates with an e-mail address and carries one of
three roles.  Each role owns exactly one profile record (patient,
doctor or clerk) whose id is the *role-scoped id* used throughout the
appointment rules.  Appointments link a patient profile to a doctor
profile and move through the Scheduled/Completed/Cancelled/NoShow
states.
"""
from __future__ import annotations

import uuid

from django.contrib.auth.models import AbstractUser, BaseUserManager
from django.db import models
from django.utils import timezone


class UserManager(BaseUserManager):
    """Manager for users identified by e-mail instead of a username."""

    use_in_migrations = True

    def _create_user(self, email, password, **extra_fields):
        if not email:
            raise ValueError("The e-mail address must be set")
        email = self.normalize_email(email).lower()
        user = self.model(email=email, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_user(self, email, password=None, **extra_fields):
        extra_fields.setdefault("is_staff", False)
        extra_fields.setdefault("is_superuser", False)
        return self._create_user(email, password, **extra_fields)

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)
        extra_fields.setdefault("role", User.ROLE_CLERK)
        if extra_fields.get("is_staff") is not True:
            raise ValueError("Superuser must have is_staff=True.")
        if extra_fields.get("is_superuser") is not True:
            raise ValueError("Superuser must have is_superuser=True.")
        return self._create_user(email, password, **extra_fields)


class User(AbstractUser):
    """Clinic account.

    ``role`` is fixed at creation time.  Accounts created through public
    registration start inactive and must be approved by a clerk before
    they can log in.
    """
    ROLE_PATIENT = 'Patient'
    ROLE_DOCTOR = 'Doctor'
    ROLE_CLERK = 'Clerk'
    ROLE_CHOICES = [
        (ROLE_PATIENT, 'Patient'),
        (ROLE_DOCTOR, 'Doctor'),
        (ROLE_CLERK, 'Clerk'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    username = None
    email = models.EmailField(unique=True)
    phone = models.CharField(max_length=32, blank=True)
    role = models.CharField(max_length=10, choices=ROLE_CHOICES, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS: list[str] = []

    objects = UserManager()

    def __str__(self) -> str:
        return f"{self.email} ({self.role})"

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def profile(self):
        """Return the profile matching the user's role, or ``None``."""
        related = {
            self.ROLE_PATIENT: 'patient_profile',
            self.ROLE_DOCTOR: 'doctor_profile',
            self.ROLE_CLERK: 'clerk_profile',
        }.get(self.role)
        return getattr(self, related, None) if related else None


class PatientProfile(models.Model):
    """Patient-specific information kept apart from the login record."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='patient_profile')
    date_of_birth = models.DateField(null=True, blank=True)
    address = models.CharField(max_length=255, blank=True)
    emergency_contact_name = models.CharField(max_length=100, blank=True)
    emergency_contact_phone = models.CharField(max_length=32, blank=True)
    registration_date = models.DateTimeField(auto_now_add=True)
    # Free-form notes maintained by doctors and clerks
    doctor_notes = models.TextField(blank=True)

    def __str__(self) -> str:
        return f"{self.user.full_name or self.user.email} (patient)"


class DoctorProfile(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='doctor_profile')
    specialization = models.CharField(max_length=100)
    license_number = models.CharField(max_length=50, blank=True)
    years_of_experience = models.PositiveIntegerField(null=True, blank=True)
    joined_date = models.DateField(default=timezone.localdate)

    def __str__(self) -> str:
        return f"Dr. {self.user.full_name or self.user.email} ({self.specialization})"


class ClerkProfile(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='clerk_profile')
    department = models.CharField(max_length=100, blank=True)
    hire_date = models.DateField(default=timezone.localdate)

    def __str__(self) -> str:
        return f"{self.user.full_name or self.user.email} (clerk)"


class Appointment(models.Model):
    """A booked consultation between a patient and a doctor.

    ``duration_minutes`` is recorded for display; double-booking checks
    always use the fixed clinic slot length.
    """
    STATUS_SCHEDULED = 'Scheduled'
    STATUS_COMPLETED = 'Completed'
    STATUS_CANCELLED = 'Cancelled'
    STATUS_NO_SHOW = 'NoShow'
    STATUS_CHOICES = [
        (STATUS_SCHEDULED, 'Scheduled'),
        (STATUS_COMPLETED, 'Completed'),
        (STATUS_CANCELLED, 'Cancelled'),
        (STATUS_NO_SHOW, 'No show'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    patient = models.ForeignKey(PatientProfile, on_delete=models.PROTECT, related_name='appointments')
    doctor = models.ForeignKey(DoctorProfile, on_delete=models.PROTECT, related_name='appointments')
    appointment_date = models.DateTimeField(db_index=True)
    duration_minutes = models.PositiveIntegerField(default=30)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_SCHEDULED, db_index=True)
    reason = models.CharField(max_length=500, blank=True)
    notes = models.TextField(blank=True)
    doctor_notes = models.TextField(blank=True)
    created_by = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='booked_appointments'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ['appointment_date']
        indexes = [
            models.Index(fields=['doctor', 'status', 'appointment_date'], name='appt_doctor_status_date_idx'),
            models.Index(fields=['patient', 'appointment_date'], name='appt_patient_date_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.appointment_date:%Y-%m-%d %H:%M} {self.status}"


class AuditEvent(models.Model):
    """Append-only record of security relevant and scheduling actions."""
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True)
    action = models.CharField(max_length=64)
    object_type = models.CharField(max_length=64, blank=True, null=True)
    object_id = models.CharField(max_length=64, blank=True, null=True)
    detail = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['action', 'created_at'], name='audit_action_created_idx'),
            models.Index(fields=['object_type', 'object_id', 'created_at'], name='audit_object_created_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.action} {self.object_type}:{self.object_id}"
