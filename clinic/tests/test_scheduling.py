import uuid
from datetime import date

import pytest

from clinic.errors import ClinicError, ErrorKind
from clinic.models import Appointment, User
from clinic.services import scheduling as rules
from clinic.services.accounts import issue_tokens
from clinic.services.scheduling import Principal

from .factories import at, book, make_clerk, make_doctor, make_patient

pytestmark = pytest.mark.django_db


def principal(role, scoped=None):
    return Principal(role=role, subject_id=uuid.uuid4(), role_scoped_id=scoped)


# ---------------------------------------------------------------------
# Pure rules
# ---------------------------------------------------------------------
def test_slot_grid_has_twenty_half_hour_slots():
    slots = rules.enumerate_slots([])
    assert len(slots) == 20
    assert [s['time'] for s in slots[:3]] == ['08:00', '08:30', '09:00']
    assert all(s['available'] for s in slots)


def test_off_grid_booking_marks_no_slot():
    slots = rules.enumerate_slots([at(2030, 1, 15, 9, 15)])
    assert all(s['available'] for s in slots)
    slots = rules.enumerate_slots([at(2030, 1, 15, 9, 0)])
    assert [s['time'] for s in slots if not s['available']] == ['09:00']


@pytest.mark.parametrize('raw, expected', [
    ('Scheduled', 'Scheduled'),
    ('completed', 'Completed'),
    ('CANCELLED', 'Cancelled'),
    ('noshow', 'NoShow'),
    ('No show', None),
    ('', None),
    (None, None),
])
def test_parse_status(raw, expected):
    assert rules.parse_status(raw) == expected


def test_status_guards_check_in_documented_order():
    done = Appointment(status=Appointment.STATUS_COMPLETED)
    gone = Appointment(status=Appointment.STATUS_CANCELLED)
    live = Appointment(status=Appointment.STATUS_SCHEDULED)
    assert rules.reschedule_error(done) is ErrorKind.ALREADY_COMPLETED
    assert rules.reschedule_error(gone) is ErrorKind.ALREADY_CANCELLED
    assert rules.reschedule_error(live) is None
    assert rules.cancel_error(gone) is ErrorKind.ALREADY_CANCELLED
    assert rules.cancel_error(done) is ErrorKind.ALREADY_COMPLETED
    assert rules.cancel_error(Appointment(status=Appointment.STATUS_NO_SHOW)) is None


def test_role_matrix():
    p, d, c = principal('Patient'), principal('Doctor'), principal('Clerk')
    assert rules.role_error(d, rules.CREATE) is ErrorKind.FORBIDDEN
    assert rules.role_error(p, rules.SET_STATUS) is ErrorKind.FORBIDDEN
    assert rules.role_error(c, rules.COMPLETE) is ErrorKind.FORBIDDEN
    assert rules.role_error(d, rules.CANCEL) is ErrorKind.FORBIDDEN
    assert rules.role_error(principal('Nurse'), rules.VIEW) is ErrorKind.FORBIDDEN
    assert rules.role_error(c, rules.CANCEL) is None


def test_ownership_checks():
    mine, other = uuid.uuid4(), uuid.uuid4()
    appt = Appointment(patient_id=mine, doctor_id=other)
    assert rules.authorization_error(principal('Patient', mine), rules.CANCEL, appointment=appt) is None
    assert rules.authorization_error(principal('Patient', other), rules.CANCEL, appointment=appt) is ErrorKind.FORBIDDEN
    assert rules.authorization_error(principal('Doctor', other), rules.COMPLETE, appointment=appt) is None
    assert rules.authorization_error(principal('Doctor', mine), rules.COMPLETE, appointment=appt) is ErrorKind.FORBIDDEN
    assert rules.authorization_error(principal('Clerk'), rules.RESCHEDULE, appointment=appt) is None
    assert rules.authorization_error(principal('Patient', mine), rules.CREATE, patient_id=mine) is None
    assert rules.authorization_error(principal('Patient', mine), rules.CREATE, patient_id=other) is ErrorKind.FORBIDDEN
    # no profile, no ownership
    assert rules.authorization_error(principal('Patient'), rules.VIEW, appointment=appt) is ErrorKind.FORBIDDEN


# ---------------------------------------------------------------------
# Database backed rules
# ---------------------------------------------------------------------
def test_conflict_window_is_fixed_half_hour():
    pat = make_patient()
    doc = make_doctor()
    book(pat, doc, at(2030, 1, 15, 9), duration_minutes=90)
    doctor_id = doc.doctor_profile.id
    assert rules.slot_error(doctor_id, at(2030, 1, 15, 8, 31)) is ErrorKind.SLOT_UNAVAILABLE
    assert rules.slot_error(doctor_id, at(2030, 1, 15, 9, 29)) is ErrorKind.SLOT_UNAVAILABLE
    assert rules.slot_error(doctor_id, at(2030, 1, 15, 8, 30)) is None
    assert rules.slot_error(doctor_id, at(2030, 1, 15, 9, 30)) is None


def test_conflicts_ignore_other_statuses_and_the_excluded_row():
    pat = make_patient()
    doc = make_doctor()
    live = book(pat, doc, at(2030, 1, 15, 9))
    book(pat, doc, at(2030, 1, 15, 11), status=Appointment.STATUS_NO_SHOW)
    doctor_id = doc.doctor_profile.id
    assert rules.slot_error(doctor_id, at(2030, 1, 15, 11)) is None
    assert rules.slot_error(doctor_id, at(2030, 1, 15, 9, 10), exclude_id=live.id) is None


def test_booked_starts_only_cover_the_day():
    pat = make_patient()
    doc = make_doctor()
    book(pat, doc, at(2030, 1, 15, 9))
    book(pat, doc, at(2030, 1, 16, 9))
    assert rules.booked_starts(doc.doctor_profile.id, date(2030, 1, 15)) == [at(2030, 1, 15, 9)]


def test_visible_appointments_per_role():
    alice, bob = make_patient('a@clinic.test'), make_patient('b@clinic.test')
    doc = make_doctor()
    mine = book(alice, doc, at(2030, 1, 15, 9))
    book(bob, doc, at(2030, 1, 15, 10))
    p = Principal('Patient', alice.id, alice.patient_profile.id)
    assert list(rules.visible_appointments(p)) == [mine]
    d = Principal('Doctor', doc.id, doc.doctor_profile.id)
    assert rules.visible_appointments(d).count() == 2
    assert rules.visible_appointments(principal('Nurse')).count() == 0


def test_resolve_principal_from_claims():
    u = make_patient()
    claims = issue_tokens(u).access_token
    p = rules.resolve_principal(u, claims)
    assert p == Principal(role=User.ROLE_PATIENT, subject_id=u.id, role_scoped_id=u.patient_profile.id)

    claims['roleSpecificId'] = 'not-a-uuid'
    with pytest.raises(ClinicError) as exc:
        rules.resolve_principal(u, claims)
    assert exc.value.kind is ErrorKind.FORBIDDEN


def test_missing_profile_is_reported_per_role():
    clerk = make_clerk()
    assert rules.missing_profile_error(Principal('Clerk', clerk.id, None)) is None
    assert rules.missing_profile_error(principal('Patient')) is ErrorKind.PATIENT_NOT_FOUND
    assert rules.missing_profile_error(principal('Doctor')) is ErrorKind.DOCTOR_NOT_FOUND
