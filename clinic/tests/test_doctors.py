import pytest
from django.urls import reverse
from rest_framework.test import APIClient

from clinic.models import DoctorProfile

from .factories import make_clerk, make_doctor, make_patient

pytestmark = pytest.mark.django_db


def client_for(user):
    c = APIClient()
    c.force_authenticate(user=user)
    return c


def test_any_role_lists_active_doctors():
    smith = make_doctor()
    make_doctor('retired@clinic.test', 'Old', 'Timer', is_active=False)
    r = client_for(make_patient()).get(reverse('doctors_list'))
    assert r.status_code == 200
    assert r.data['data'] == [
        {'id': str(smith.doctor_profile.id), 'name': 'John Smith', 'specialization': 'Cardiology'}
    ]


def test_clerk_creates_doctor():
    body = {
        'email': 'new.doc@clinic.test',
        'password': 'secret12',
        'firstName': 'Nina',
        'lastName': 'Novak',
        'specialization': 'Neurology',
        'yearsOfExperience': 4,
    }
    r = client_for(make_patient()).post(reverse('doctors_list'), body, format='json')
    assert r.status_code == 403
    r = client_for(make_clerk()).post(reverse('doctors_list'), body, format='json')
    assert r.status_code == 201
    assert r.data['data']['specialization'] == 'Neurology'
    assert r.data['data']['isActive'] is True
    assert DoctorProfile.objects.filter(user__email='new.doc@clinic.test').exists()

    body.pop('specialization')
    body['email'] = 'other.doc@clinic.test'
    r = client_for(make_clerk('c2@clinic.test')).post(reverse('doctors_list'), body, format='json')
    assert r.data['error']['code'] == 'VALIDATION_ERROR'


def test_get_update_and_deactivate_doctor():
    smith = make_doctor()
    clerk = client_for(make_clerk())
    url = reverse('doctor_detail', args=[str(smith.doctor_profile.id)])

    assert client_for(make_patient()).get(url).status_code == 200
    assert clerk.get(reverse('doctor_detail', args=['bad'])).data['error']['code'] == 'INVALID_ID'
    r = clerk.get(reverse('doctor_detail', args=['00000000-0000-0000-0000-000000000002']))
    assert r.status_code == 404

    r = clerk.put(url, {'specialization': 'Cardiothoracic Surgery', 'licenseNumber': 'MD777'}, format='json')
    assert r.status_code == 200
    assert r.data['data']['specialization'] == 'Cardiothoracic Surgery'
    assert r.data['data']['licenseNumber'] == 'MD777'
    assert r.data['data']['lastName'] == 'Smith'

    assert client_for(smith).put(url, {'specialization': 'x'}, format='json').status_code == 403

    r = clerk.delete(url)
    assert r.status_code == 200
    smith.refresh_from_db()
    assert smith.is_active is False
