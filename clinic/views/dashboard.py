"""
Dashboard counters for clerks and doctors.

"Today" is the current calendar day in the clinic time zone.
"""
from __future__ import annotations

from django.utils import timezone
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated

from ..errors import raise_if
from ..exceptions import api_response
from ..models import Appointment, DoctorProfile, PatientProfile
from ..permissions import IsClerkRole, IsDoctorRole
from ..services.scheduling import day_bounds, missing_profile_error, principal_for_request


def _today_range():
    return day_bounds(timezone.localdate())


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsClerkRole])
def clerk_dashboard(request):
    start, end = _today_range()
    appointments = Appointment.objects.all()
    return api_response({
        'todayAppointments': appointments.filter(appointment_date__gte=start, appointment_date__lt=end).count(),
        'pendingAppointments': appointments.filter(status=Appointment.STATUS_SCHEDULED).count(),
        'totalPatients': PatientProfile.objects.count(),
        'totalDoctors': DoctorProfile.objects.count(),
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsDoctorRole])
def doctor_dashboard(request):
    principal = principal_for_request(request)
    raise_if(missing_profile_error(principal))
    start, end = _today_range()
    mine = Appointment.objects.filter(doctor_id=principal.role_scoped_id)
    return api_response({
        'todayAppointments': mine.filter(appointment_date__gte=start, appointment_date__lt=end).count(),
        'pendingAppointments': mine.filter(status=Appointment.STATUS_SCHEDULED).count(),
        'totalPatients': mine.order_by().values('patient_id').distinct().count(),
        'completedAppointments': mine.filter(status=Appointment.STATUS_COMPLETED).count(),
    })
