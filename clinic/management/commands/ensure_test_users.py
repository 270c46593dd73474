# clinic/management/commands/ensure_test_users.py
from django.core.management.base import BaseCommand
from django.db import transaction

from clinic.models import ClerkProfile, DoctorProfile, PatientProfile, User

TEST_PASSWORD = "Password123!"

TEST_SET = [
    ("patient@clinic.test", User.ROLE_PATIENT, "Test", "Patient"),
    ("doctor@clinic.test", User.ROLE_DOCTOR, "Test", "Doctor"),
    ("clerk@clinic.test", User.ROLE_CLERK, "Test", "Clerk"),
]


class Command(BaseCommand):
    help = f"Ensure one active test account per role exists with password={TEST_PASSWORD} (idempotent)."

    @transaction.atomic
    def handle(self, *args, **opts):
        for email, role, first, last in TEST_SET:
            u = User.objects.filter(email=email).first()
            if u is None:
                u = User.objects.create_user(email=email, password=TEST_PASSWORD, role=role,
                                             first_name=first, last_name=last, is_active=True)
            else:
                # reset password and activation, role stays as created
                u.set_password(TEST_PASSWORD)
                u.is_active = True
                u.save(update_fields=["password", "is_active"])
            if u.role == User.ROLE_PATIENT:
                PatientProfile.objects.get_or_create(user=u)
            elif u.role == User.ROLE_DOCTOR:
                DoctorProfile.objects.get_or_create(user=u, defaults={"specialization": "General Practitioner"})
            else:
                ClerkProfile.objects.get_or_create(user=u)
            self.stdout.write(self.style.SUCCESS(f"ok: {email} ({u.role})"))
        self.stdout.write(self.style.SUCCESS("All test users ensured."))
