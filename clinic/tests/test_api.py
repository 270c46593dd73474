"""
Integration tests for the appointment API.

These tests exercise booking with conflict detection, the available
slot grid, role-scoped visibility and the status guards through the
HTTP layer using DRF's APIClient within the APITestCase base class.

To run the tests:

```
pytest -q clinic/tests
```
"""

from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from ..models import Appointment
from .factories import at, book, make_clerk, make_doctor, make_patient


class AppointmentAPITests(APITestCase):
    def setUp(self) -> None:
        """Two patients, two doctors and a clerk."""
        self.patient_a = make_patient('alice@clinic.test', 'Alice', 'Martin')
        self.patient_b = make_patient('bob@clinic.test', 'Bob', 'Durand')
        self.smith = make_doctor('smith@clinic.test', 'John', 'Smith', specialization='Cardiology')
        self.jones = make_doctor('jones@clinic.test', 'Mary', 'Jones', specialization='Pediatrics')
        self.clerk = make_clerk()

        self.list_url = reverse('appointments_list')
        self.slots_url = reverse('appointments_available_slots')

    def _login(self, user):
        self.client.force_authenticate(user=user)

    def _detail(self, appointment, suffix=''):
        names = {'': 'appointment_detail', 'status': 'appointment_status', 'complete': 'appointment_complete'}
        return reverse(names[suffix], args=[str(appointment.id)])

    def _book_as_patient_a(self, when):
        return self.client.post(self.list_url, {
            'patientId': str(self.patient_a.patient_profile.id),
            'doctorId': str(self.smith.doctor_profile.id),
            'appointmentDate': when,
            'reason': 'Chest pain',
        }, format='json')

    # -----------------------------------------------------------------
    # Booking and conflicts
    # -----------------------------------------------------------------
    def test_double_booking_is_rejected_within_the_half_hour_window(self):
        self._login(self.patient_a)
        first = self._book_as_patient_a('2030-01-15T09:00:00')
        self.assertEqual(first.status_code, status.HTTP_201_CREATED)
        self.assertTrue(first.data['success'])
        self.assertEqual(first.data['data']['status'], 'Scheduled')
        self.assertEqual(first.data['data']['doctorName'], 'Dr. John Smith')
        self.assertEqual(first.data['data']['createdBy'], str(self.patient_a.id))

        overlap = self._book_as_patient_a('2030-01-15T09:15:00')
        self.assertEqual(overlap.status_code, status.HTTP_409_CONFLICT)
        self.assertFalse(overlap.data['success'])
        self.assertEqual(overlap.data['error']['code'], 'SLOT_UNAVAILABLE')

        adjacent = self._book_as_patient_a('2030-01-15T09:30:00')
        self.assertEqual(adjacent.status_code, status.HTTP_201_CREATED)
        self.assertEqual(Appointment.objects.filter(doctor=self.smith.doctor_profile).count(), 2)

    def test_cancelled_appointments_do_not_block_the_slot(self):
        book(self.patient_b, self.smith, at(2030, 1, 15, 9), status=Appointment.STATUS_CANCELLED)
        self._login(self.patient_a)
        r = self._book_as_patient_a('2030-01-15T09:00:00')
        self.assertEqual(r.status_code, status.HTTP_201_CREATED)

    def test_patient_cannot_book_for_someone_else(self):
        self._login(self.patient_a)
        r = self.client.post(self.list_url, {
            'patientId': str(self.patient_b.patient_profile.id),
            'doctorId': str(self.smith.doctor_profile.id),
            'appointmentDate': '2030-01-15T10:00:00',
        }, format='json')
        self.assertEqual(r.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(r.data['error']['code'], 'FORBIDDEN')
        self.assertFalse(Appointment.objects.exists())

    def test_doctor_cannot_book(self):
        self._login(self.smith)
        r = self.client.post(self.list_url, {
            'patientId': str(self.patient_a.patient_profile.id),
            'doctorId': str(self.smith.doctor_profile.id),
            'appointmentDate': '2030-01-15T10:00:00',
        }, format='json')
        self.assertEqual(r.status_code, status.HTTP_403_FORBIDDEN)

    def test_clerk_books_for_any_patient(self):
        self._login(self.clerk)
        r = self.client.post(self.list_url, {
            'patientId': str(self.patient_b.patient_profile.id),
            'doctorId': str(self.jones.doctor_profile.id),
            'appointmentDate': '2030-01-15T10:00:00',
            'notes': 'Bring vaccination card',
        }, format='json')
        self.assertEqual(r.status_code, status.HTTP_201_CREATED)
        self.assertEqual(r.data['data']['patientName'], 'Bob Durand')
        self.assertEqual(r.data['data']['durationMinutes'], 30)

    def test_create_validates_ids_in_order(self):
        self._login(self.clerk)
        r = self.client.post(self.list_url, {
            'patientId': 'nope', 'doctorId': 'nope', 'appointmentDate': '2030-01-15T10:00:00',
        }, format='json')
        self.assertEqual(r.data['error']['code'], 'INVALID_PATIENT_ID')

        r = self.client.post(self.list_url, {
            'patientId': str(self.patient_a.patient_profile.id), 'doctorId': 'nope',
            'appointmentDate': '2030-01-15T10:00:00',
        }, format='json')
        self.assertEqual(r.data['error']['code'], 'INVALID_DOCTOR_ID')

        r = self.client.post(self.list_url, {
            'patientId': str(self.smith.doctor_profile.id),
            'doctorId': str(self.smith.doctor_profile.id),
            'appointmentDate': '2030-01-15T10:00:00',
        }, format='json')
        self.assertEqual(r.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(r.data['error']['code'], 'PATIENT_NOT_FOUND')

        r = self.client.post(self.list_url, {
            'patientId': str(self.patient_a.patient_profile.id),
            'doctorId': str(self.patient_a.patient_profile.id),
            'appointmentDate': '2030-01-15T10:00:00',
        }, format='json')
        self.assertEqual(r.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(r.data['error']['code'], 'DOCTOR_NOT_FOUND')

    def test_create_rejects_unparseable_date(self):
        self._login(self.patient_a)
        r = self._book_as_patient_a('next tuesday')
        self.assertEqual(r.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(r.data['error']['code'], 'INVALID_DATE')

    # -----------------------------------------------------------------
    # Available slots
    # -----------------------------------------------------------------
    def test_available_slots_grid(self):
        book(self.patient_a, self.smith, at(2030, 1, 15, 9))
        book(self.patient_b, self.smith, at(2030, 1, 15, 14, 30), status=Appointment.STATUS_CANCELLED)
        self._login(self.patient_b)
        r = self.client.get(self.slots_url, {'doctorId': str(self.smith.doctor_profile.id), 'date': '2030-01-15'})
        self.assertEqual(r.status_code, status.HTTP_200_OK)
        slots = r.data['data']
        self.assertEqual(len(slots), 20)
        self.assertEqual(slots[0]['time'], '08:00')
        self.assertEqual(slots[-1]['time'], '17:30')
        by_time = {s['time']: s['available'] for s in slots}
        self.assertFalse(by_time['09:00'])
        self.assertTrue(by_time['14:30'])
        self.assertEqual(sum(1 for s in slots if not s['available']), 1)

    def test_available_slots_errors(self):
        self._login(self.patient_a)
        r = self.client.get(self.slots_url, {'doctorId': 'x', 'date': '2030-01-15'})
        self.assertEqual(r.data['error']['code'], 'INVALID_DOCTOR_ID')
        r = self.client.get(self.slots_url, {'doctorId': str(self.smith.doctor_profile.id)})
        self.assertEqual(r.data['error']['code'], 'INVALID_DATE')
        r = self.client.get(self.slots_url, {'doctorId': str(self.patient_a.patient_profile.id), 'date': '2030-01-15'})
        self.assertEqual(r.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(r.data['error']['code'], 'DOCTOR_NOT_FOUND')

    # -----------------------------------------------------------------
    # Visibility
    # -----------------------------------------------------------------
    def test_list_is_scoped_by_role(self):
        a1 = book(self.patient_a, self.smith, at(2030, 1, 15, 11))
        a2 = book(self.patient_a, self.jones, at(2030, 1, 15, 9))
        b1 = book(self.patient_b, self.smith, at(2030, 1, 16, 9))

        self._login(self.patient_a)
        ids = [a['id'] for a in self.client.get(self.list_url).data['data']]
        self.assertEqual(ids, [str(a2.id), str(a1.id)])

        self._login(self.smith)
        ids = {a['id'] for a in self.client.get(self.list_url).data['data']}
        self.assertEqual(ids, {str(a1.id), str(b1.id)})

        # doctorId is ignored for doctors
        ids = {a['id'] for a in self.client.get(self.list_url, {'doctorId': str(self.jones.doctor_profile.id)}).data['data']}
        self.assertEqual(ids, {str(a1.id), str(b1.id)})

        self._login(self.clerk)
        self.assertEqual(len(self.client.get(self.list_url).data['data']), 3)
        r = self.client.get(self.list_url, {'doctorId': str(self.jones.doctor_profile.id)})
        self.assertEqual([a['id'] for a in r.data['data']], [str(a2.id)])
        r = self.client.get(self.list_url, {'doctorId': 'not-a-uuid'})
        self.assertEqual(len(r.data['data']), 3)

    def test_list_filters_by_status_and_day(self):
        book(self.patient_a, self.smith, at(2030, 1, 15, 9), status=Appointment.STATUS_COMPLETED)
        kept = book(self.patient_a, self.smith, at(2030, 1, 15, 10))
        book(self.patient_a, self.smith, at(2030, 1, 16, 10))
        self._login(self.clerk)

        r = self.client.get(self.list_url, {'status': 'scheduled', 'date': '2030-01-15'})
        self.assertEqual([a['id'] for a in r.data['data']], [str(kept.id)])
        r = self.client.get(self.list_url, {'status': 'whatever'})
        self.assertEqual(len(r.data['data']), 3)
        r = self.client.get(self.list_url, {'date': '15/01/2030'})
        self.assertEqual(r.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(r.data['error']['code'], 'INVALID_DATE')

    def test_get_appointment_ownership(self):
        appt = book(self.patient_a, self.smith, at(2030, 1, 15, 9))
        self._login(self.patient_b)
        r = self.client.get(self._detail(appt))
        self.assertEqual(r.status_code, status.HTTP_403_FORBIDDEN)

        self._login(self.jones)
        self.assertEqual(self.client.get(self._detail(appt)).status_code, status.HTTP_403_FORBIDDEN)

        self._login(self.smith)
        r = self.client.get(self._detail(appt))
        self.assertEqual(r.status_code, status.HTTP_200_OK)
        self.assertEqual(r.data['data']['doctorSpecialization'], 'Cardiology')

    def test_get_appointment_bad_and_unknown_ids(self):
        self._login(self.clerk)
        r = self.client.get(reverse('appointment_detail', args=['123']))
        self.assertEqual(r.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(r.data['error']['code'], 'INVALID_ID')
        r = self.client.get(reverse('appointment_detail', args=['00000000-0000-0000-0000-000000000000']))
        self.assertEqual(r.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(r.data['error']['code'], 'NOT_FOUND')

    # -----------------------------------------------------------------
    # Cancel
    # -----------------------------------------------------------------
    def test_patient_cannot_cancel_another_patients_appointment(self):
        appt = book(self.patient_b, self.smith, at(2030, 1, 15, 9))
        self._login(self.patient_a)
        r = self.client.delete(self._detail(appt))
        self.assertEqual(r.status_code, status.HTTP_403_FORBIDDEN)
        appt.refresh_from_db()
        self.assertEqual(appt.status, Appointment.STATUS_SCHEDULED)

    def test_cancel_sets_status_and_timestamp(self):
        appt = book(self.patient_a, self.smith, at(2030, 1, 15, 9))
        self._login(self.patient_a)
        r = self.client.delete(self._detail(appt))
        self.assertEqual(r.status_code, status.HTTP_200_OK)
        self.assertEqual(r.data['data']['appointmentId'], str(appt.id))
        appt.refresh_from_db()
        self.assertEqual(appt.status, Appointment.STATUS_CANCELLED)
        self.assertIsNotNone(appt.cancelled_at)

        cancelled_at = appt.cancelled_at
        again = self.client.delete(self._detail(appt))
        self.assertEqual(again.data['error']['code'], 'ALREADY_CANCELLED')
        appt.refresh_from_db()
        self.assertEqual(appt.status, Appointment.STATUS_CANCELLED)
        self.assertEqual(appt.cancelled_at, cancelled_at)

    def test_cancel_completed_appointment(self):
        appt = book(self.patient_a, self.smith, at(2030, 1, 15, 9), status=Appointment.STATUS_COMPLETED)
        self._login(self.clerk)
        r = self.client.delete(self._detail(appt))
        self.assertEqual(r.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(r.data['error']['code'], 'ALREADY_COMPLETED')
        appt.refresh_from_db()
        self.assertEqual(appt.status, Appointment.STATUS_COMPLETED)
        self.assertIsNone(appt.cancelled_at)

    def test_doctor_cannot_cancel(self):
        appt = book(self.patient_a, self.smith, at(2030, 1, 15, 9))
        self._login(self.smith)
        self.assertEqual(self.client.delete(self._detail(appt)).status_code, status.HTTP_403_FORBIDDEN)

    # -----------------------------------------------------------------
    # Reschedule
    # -----------------------------------------------------------------
    def test_reschedule_checks_conflicts_excluding_itself(self):
        appt = book(self.patient_a, self.smith, at(2030, 1, 15, 9))
        book(self.patient_b, self.smith, at(2030, 1, 15, 11))
        self._login(self.patient_a)

        r = self.client.put(self._detail(appt), {'appointmentDate': '2030-01-15T09:10:00'}, format='json')
        self.assertEqual(r.status_code, status.HTTP_200_OK)

        r = self.client.put(self._detail(appt), {'appointmentDate': '2030-01-15T11:20:00'}, format='json')
        self.assertEqual(r.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(r.data['error']['code'], 'SLOT_UNAVAILABLE')

    def test_reschedule_terminal_states(self):
        done = book(self.patient_a, self.smith, at(2030, 1, 15, 9), status=Appointment.STATUS_COMPLETED)
        gone = book(self.patient_a, self.smith, at(2030, 1, 15, 10), status=Appointment.STATUS_CANCELLED)
        self._login(self.clerk)
        r = self.client.put(self._detail(done), {'appointmentDate': '2030-01-20T09:00:00'}, format='json')
        self.assertEqual(r.data['error']['code'], 'ALREADY_COMPLETED')
        r = self.client.put(self._detail(gone), {'appointmentDate': '2030-01-20T09:00:00'}, format='json')
        self.assertEqual(r.data['error']['code'], 'ALREADY_CANCELLED')

        done.refresh_from_db()
        gone.refresh_from_db()
        self.assertEqual(done.appointment_date, at(2030, 1, 15, 9))
        self.assertEqual(done.status, Appointment.STATUS_COMPLETED)
        self.assertEqual(gone.appointment_date, at(2030, 1, 15, 10))
        self.assertEqual(gone.status, Appointment.STATUS_CANCELLED)

    def test_doctor_reschedules_only_own(self):
        appt = book(self.patient_a, self.smith, at(2030, 1, 15, 9))
        self._login(self.jones)
        r = self.client.put(self._detail(appt), {'appointmentDate': '2030-01-15T13:00:00'}, format='json')
        self.assertEqual(r.status_code, status.HTTP_403_FORBIDDEN)
        self._login(self.smith)
        r = self.client.put(self._detail(appt), {'appointmentDate': '2030-01-15T13:00:00'}, format='json')
        self.assertEqual(r.status_code, status.HTTP_200_OK)

    # -----------------------------------------------------------------
    # Status and completion
    # -----------------------------------------------------------------
    def test_status_update_is_case_insensitive_and_unconditional(self):
        appt = book(self.patient_a, self.smith, at(2030, 1, 15, 9), status=Appointment.STATUS_CANCELLED)
        self._login(self.clerk)
        r = self.client.put(self._detail(appt, 'status'), {'status': 'noshow'}, format='json')
        self.assertEqual(r.status_code, status.HTTP_200_OK)
        self.assertEqual(r.data['data']['status'], 'NoShow')

        r = self.client.put(self._detail(appt, 'status'), {'status': 'later'}, format='json')
        self.assertEqual(r.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(r.data['error']['code'], 'INVALID_STATUS')

    def test_status_update_permissions(self):
        appt = book(self.patient_a, self.smith, at(2030, 1, 15, 9))
        self._login(self.patient_a)
        r = self.client.put(self._detail(appt, 'status'), {'status': 'Completed'}, format='json')
        self.assertEqual(r.status_code, status.HTTP_403_FORBIDDEN)
        self._login(self.jones)
        r = self.client.put(self._detail(appt, 'status'), {'status': 'Completed'}, format='json')
        self.assertEqual(r.status_code, status.HTTP_403_FORBIDDEN)
        self._login(self.smith)
        r = self.client.put(self._detail(appt, 'status'), {'status': 'Cancelled'}, format='json')
        self.assertEqual(r.status_code, status.HTTP_200_OK)
        self.assertIsNotNone(r.data['data']['cancelledAt'])

    def test_complete_is_idempotent_and_replaces_notes(self):
        appt = book(self.patient_a, self.smith, at(2030, 1, 15, 9))
        self._login(self.smith)
        r = self.client.put(self._detail(appt, 'complete'), {'doctorNotes': 'BP 120/80'}, format='json')
        self.assertEqual(r.status_code, status.HTTP_200_OK)
        self.assertEqual(r.data['data']['status'], 'Completed')
        r = self.client.put(self._detail(appt, 'complete'), {'doctorNotes': 'Follow-up in 6 months'}, format='json')
        self.assertEqual(r.status_code, status.HTTP_200_OK)
        appt.refresh_from_db()
        self.assertEqual(appt.status, Appointment.STATUS_COMPLETED)
        self.assertEqual(appt.doctor_notes, 'Follow-up in 6 months')

    def test_only_the_appointments_doctor_completes(self):
        appt = book(self.patient_a, self.smith, at(2030, 1, 15, 9))
        for user in (self.jones, self.clerk, self.patient_a):
            self._login(user)
            r = self.client.put(self._detail(appt, 'complete'), {'doctorNotes': 'x'}, format='json')
            self.assertEqual(r.status_code, status.HTTP_403_FORBIDDEN)

    def test_unauthenticated_requests_get_the_envelope(self):
        r = self.client.get(self.list_url)
        self.assertEqual(r.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(r.data['error']['code'], 'UNAUTHORIZED')
        self.assertIsNone(r.data['data'])
