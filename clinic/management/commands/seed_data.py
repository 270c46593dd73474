"""
Management command to fill an empty database with demo data.

Creates patients, doctors and one clerk with Faker-generated details
plus a handful of appointments per patient.  Three accounts get fixed
addresses so the mobile client can sign in straight away; every seeded
account uses the same password.
"""
import random
from datetime import datetime, time, timedelta

from django.conf import settings
from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone
from faker import Faker

from clinic.models import Appointment, ClerkProfile, DoctorProfile, PatientProfile, User

SEED_PASSWORD = 'Password123!'

PATIENT_COUNT = 8
DOCTOR_COUNT = 4

FIXED_PATIENT = ('patient.jean.dupont@clinic.com', 'Jean', 'Dupont')
FIXED_DOCTOR = ('doctor.martin.dupont@clinic.com', 'Martin', 'Dupont')
FIXED_CLERK = ('clerk.claire.laurent@clinic.com', 'Claire', 'Laurent')

SPECIALIZATIONS = [
    'General Practitioner', 'Cardiology', 'Pediatrics', 'Dermatology', 'Neurology',
    'Orthopedics', 'Ophthalmology', 'Gynecology', 'Psychiatry', 'Urology',
]

REASONS = [
    'Routine check-up', 'Cardiac follow-up', 'Skin examination', 'Pediatric consultation',
    'Annual physical', 'Abdominal pain', 'Frequent headaches', 'Eye exam', 'Vaccination',
    'Prescription renewal', 'Blood test review', 'Post-operative follow-up',
]

DOCTOR_NOTES = [
    'Patient in good health. Follow-up in 6 months.',
    'Blood pressure stable. Continue current treatment.',
    'Benign rash. Cream prescribed.',
    'Full work-up satisfactory.',
    'Symptoms likely stress related. Rest recommended.',
    'Test results within normal ranges.',
]


class Command(BaseCommand):
    help = 'Seed demo patients, doctors, a clerk and appointments'

    def add_arguments(self, parser):
        parser.add_argument('--force', action='store_true', help='Seed even when users already exist')
        parser.add_argument('--seed', type=int, default=None, help='Random seed for reproducible data')

    def handle(self, *args, **options):
        if User.objects.exists() and not options['force']:
            self.stdout.write(self.style.WARNING('Users already exist, nothing seeded (use --force).'))
            return

        self.fake = Faker()
        if options['seed'] is not None:
            Faker.seed(options['seed'])
            random.seed(options['seed'])

        with transaction.atomic():
            patients = self.create_patients()
            doctors = self.create_doctors()
            clerk = self.create_clerk()
            count = self.create_appointments(patients, doctors, clerk)

        self.stdout.write(self.style.SUCCESS(
            f'Seeded {len(patients)} patients, {len(doctors)} doctors, 1 clerk and {count} appointments.'
        ))
        self.stdout.write(f'All accounts use password {SEED_PASSWORD}')

    # -----------------------------------------------------------------
    def _user(self, role, fixed=None):
        if fixed is not None:
            email, first, last = fixed
        else:
            first, last = self.fake.first_name(), self.fake.last_name()
            email = f'{role.lower()}.{first}.{last}.{self.fake.unique.random_int(100, 999)}@clinic.com'.lower()
        if User.objects.filter(email__iexact=email).exists():
            return None
        return User.objects.create_user(
            email=email,
            password=SEED_PASSWORD,
            first_name=first,
            last_name=last,
            phone=self.fake.phone_number()[:32],
            role=role,
            is_active=True,
        )

    def create_patients(self):
        patients = []
        for i in range(PATIENT_COUNT):
            user = self._user(User.ROLE_PATIENT, FIXED_PATIENT if i == 0 else None)
            if user is None:
                continue
            patients.append(PatientProfile.objects.create(
                user=user,
                date_of_birth=self.fake.date_of_birth(minimum_age=1, maximum_age=90),
                address=self.fake.address().replace('\n', ', ')[:255],
                emergency_contact_name=self.fake.name()[:100],
                emergency_contact_phone=self.fake.phone_number()[:32],
            ))
        self.stdout.write(f'✔ {len(patients)} patients created.')
        return patients

    def create_doctors(self):
        doctors = []
        for i in range(DOCTOR_COUNT):
            user = self._user(User.ROLE_DOCTOR, FIXED_DOCTOR if i == 0 else None)
            if user is None:
                continue
            doctors.append(DoctorProfile.objects.create(
                user=user,
                specialization=SPECIALIZATIONS[0] if i == 0 else random.choice(SPECIALIZATIONS),
                license_number=f'MD{random.randint(10000, 99999)}',
                years_of_experience=random.randint(1, 30),
                joined_date=self.fake.date_between(start_date='-10y', end_date='today'),
            ))
        self.stdout.write(f'✔ {len(doctors)} doctors created.')
        return doctors

    def create_clerk(self):
        user = self._user(User.ROLE_CLERK, FIXED_CLERK)
        if user is None:
            return User.objects.get(email=FIXED_CLERK[0])
        ClerkProfile.objects.create(user=user, department='Front desk')
        self.stdout.write('✔ 1 clerk created.')
        return user

    def _slot(self, day):
        hour = random.randint(settings.CLINIC_DAY_START_HOUR, settings.CLINIC_DAY_END_HOUR - 1)
        minute = random.choice(range(0, 60, settings.CLINIC_SLOT_MINUTES))
        return timezone.make_aware(datetime.combine(day, time(hour, minute)))

    def create_appointments(self, patients, doctors, clerk):
        if not doctors:
            return 0
        today = timezone.localdate()
        now = timezone.now()
        taken = set()
        created = 0
        for patient in patients:
            for _ in range(random.randint(2, 4)):
                doctor = random.choice(doctors)
                # grid-aligned times never partially overlap, so a unique (doctor, start) is conflict free
                for _attempt in range(20):
                    start = self._slot(today + timedelta(days=random.randint(-60, 30)))
                    if (doctor.id, start) not in taken:
                        break
                else:
                    continue
                taken.add((doctor.id, start))
                past = start < now
                Appointment.objects.create(
                    patient=patient,
                    doctor=doctor,
                    appointment_date=start,
                    reason=random.choice(REASONS),
                    status=Appointment.STATUS_COMPLETED if past else Appointment.STATUS_SCHEDULED,
                    doctor_notes=random.choice(DOCTOR_NOTES) if past else '',
                    created_by=random.choice([patient.user, clerk]),
                )
                created += 1
        self.stdout.write(f'✔ {created} appointments created.')
        return created
