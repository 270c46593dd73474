"""
Patient records.

Doctors and clerks browse and annotate patients; a patient may read
and edit only their own record.  Deleting a patient deactivates the
login and keeps the appointment history.
"""
from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated

from ..errors import ClinicError, ErrorKind
from ..exceptions import api_response
from ..models import PatientProfile, User
from ..permissions import IsDoctorOrClerk
from ..serializers.patients import (
    PatientCreateSerializer,
    PatientListQuerySerializer,
    PatientNotesSerializer,
    PatientUpdateSerializer,
)
from ..services import patients as svc
from ..services.scheduling import principal_for_request
from .appointments import iso


def _serialize(p: PatientProfile) -> dict:
    return {
        'id': str(p.id),
        'email': p.user.email,
        'firstName': p.user.first_name,
        'lastName': p.user.last_name,
        'phone': p.user.phone,
        'dateOfBirth': iso(p.date_of_birth),
        'address': p.address,
        'emergencyContactName': p.emergency_contact_name,
        'emergencyContactPhone': p.emergency_contact_phone,
        'doctorNotes': p.doctor_notes,
        'registrationDate': iso(p.registration_date),
    }


def _require_roles(user: User, *roles: str) -> None:
    if user.role not in roles:
        raise ClinicError(ErrorKind.FORBIDDEN)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def patients_list(request):
    user: User = request.user
    if request.method == 'GET':
        _require_roles(user, User.ROLE_DOCTOR, User.ROLE_CLERK)
        q = PatientListQuerySerializer(data=request.query_params)
        q.is_valid(raise_exception=True)
        return api_response([_serialize(p) for p in svc.search_patients(q.validated_data.get('search'))])
    # POST
    _require_roles(user, User.ROLE_CLERK)
    s = PatientCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    patient = svc.create_patient(user, **s.to_service_kwargs())
    return api_response(_serialize(patient), status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated])
def patient_detail(request, pk: str):
    user: User = request.user
    if request.method == 'DELETE':
        _require_roles(user, User.ROLE_CLERK)
        svc.deactivate_patient(user, pk)
        return api_response({'message': 'Patient deactivated successfully'})

    principal = principal_for_request(request)
    if request.method == 'GET':
        return api_response(_serialize(svc.patient_for(principal, pk)))
    s = PatientUpdateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    patient = svc.update_patient(principal, pk, s.to_service_data())
    return api_response(_serialize(patient))


@api_view(['GET', 'PUT'])
@permission_classes([IsAuthenticated, IsDoctorOrClerk])
def patient_notes(request, pk: str):
    if request.method == 'GET':
        return api_response(svc.get_patient(pk).doctor_notes)
    s = PatientNotesSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    patient = svc.update_notes(principal_for_request(request), pk, s.validated_data['notes'])
    return api_response(patient.doctor_notes)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsDoctorOrClerk])
def medical_history(request, pk: str):
    patient, records = svc.medical_history(pk)
    return api_response({
        'patientId': str(patient.id),
        'patientName': patient.user.full_name,
        'records': [
            {
                'id': str(a.id),
                'appointmentDate': iso(a.appointment_date),
                'reason': a.reason,
                'doctorNotes': a.doctor_notes,
                'doctorName': f'Dr. {a.doctor.user.first_name} {a.doctor.user.last_name}',
                'doctorSpecialization': a.doctor.specialization,
                'status': a.status,
            }
            for a in records
        ],
        'totalRecords': len(records),
    })
