"""
Appointment endpoints.

Handlers only parse the request and shape the response; visibility,
conflict detection, status guards and ownership checks happen in
:mod:`clinic.services.appointments`.  Any rule failure surfaces as a
``ClinicError`` and is rendered by the project exception handler.
"""
from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated

from ..exceptions import api_response
from ..models import Appointment
from ..permissions import IsDoctorOrClerk, IsDoctorRole
from ..serializers.appointments import (
    AppointmentCompleteSerializer,
    AppointmentCreateSerializer,
    AppointmentListQuerySerializer,
    AppointmentRescheduleSerializer,
    AppointmentStatusSerializer,
)
from ..services import appointments as svc
from ..services.scheduling import principal_for_request


def iso(value):
    return value.isoformat() if value else None


def serialize_appointment(a: Appointment) -> dict:
    patient_user = a.patient.user
    doctor_user = a.doctor.user
    return {
        'id': str(a.id),
        'patientId': str(a.patient_id),
        'doctorId': str(a.doctor_id),
        'appointmentDate': iso(a.appointment_date),
        'durationMinutes': a.duration_minutes,
        'reason': a.reason,
        'notes': a.notes,
        'doctorNotes': a.doctor_notes,
        'status': a.status,
        'patientName': f'{patient_user.first_name} {patient_user.last_name}'.strip(),
        'doctorName': f'Dr. {doctor_user.first_name} {doctor_user.last_name}'.strip(),
        'doctorSpecialization': a.doctor.specialization,
        'createdBy': str(a.created_by_id) if a.created_by_id else None,
        'createdAt': iso(a.created_at),
        'updatedAt': iso(a.updated_at),
        'cancelledAt': iso(a.cancelled_at),
    }


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def appointments_list(request):
    principal = principal_for_request(request)
    if request.method == 'GET':
        q = AppointmentListQuerySerializer(data=request.query_params)
        q.is_valid(raise_exception=True)
        vd = q.validated_data
        items = svc.list_appointments(
            principal,
            status=vd.get('status'),
            day=vd.get('date'),
            doctor_id=vd.get('doctorId'),
        )
        return api_response([serialize_appointment(a) for a in items])

    # POST
    s = AppointmentCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    appointment = svc.create_appointment(
        principal,
        patient_id=vd.get('patientId'),
        doctor_id=vd.get('doctorId'),
        appointment_date=vd.get('appointmentDate'),
        reason=vd.get('reason', ''),
        notes=vd.get('notes', ''),
    )
    return api_response(serialize_appointment(appointment), status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def available_slots(request):
    """Half-hour grid for one doctor and day: ``[{time, available}]``."""
    slots = svc.available_slots(request.query_params.get('doctorId'), request.query_params.get('date'))
    return api_response(slots)


@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated])
def appointment_detail(request, pk: str):
    principal = principal_for_request(request)
    if request.method == 'GET':
        return api_response(serialize_appointment(svc.get_appointment(principal, pk)))
    if request.method == 'PUT':
        s = AppointmentRescheduleSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        appointment = svc.reschedule_appointment(principal, pk, s.validated_data.get('appointmentDate'))
        return api_response(serialize_appointment(appointment))
    # DELETE cancels, the row is kept
    appointment = svc.cancel_appointment(principal, pk)
    return api_response({
        'message': 'Appointment cancelled successfully',
        'appointmentId': str(appointment.id),
    })


@api_view(['PUT'])
@permission_classes([IsAuthenticated, IsDoctorOrClerk])
def appointment_status(request, pk: str):
    s = AppointmentStatusSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    appointment = svc.set_status(principal_for_request(request), pk, s.validated_data.get('status'))
    return api_response(serialize_appointment(appointment))


@api_view(['PUT'])
@permission_classes([IsAuthenticated, IsDoctorRole])
def appointment_complete(request, pk: str):
    s = AppointmentCompleteSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    appointment = svc.complete_appointment(
        principal_for_request(request), pk, s.validated_data.get('doctorNotes') or ''
    )
    return api_response(serialize_appointment(appointment))
