from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated

from ..exceptions import api_response
from ..models import DoctorProfile
from ..permissions import IsClerkOrReadOnly
from ..serializers.doctors import DoctorCreateSerializer, DoctorUpdateSerializer
from ..services import doctors as svc
from .appointments import iso


def _serialize(d: DoctorProfile) -> dict:
    return {
        'id': str(d.id),
        'email': d.user.email,
        'firstName': d.user.first_name,
        'lastName': d.user.last_name,
        'phone': d.user.phone,
        'specialization': d.specialization,
        'licenseNumber': d.license_number,
        'yearsOfExperience': d.years_of_experience,
        'joinedDate': iso(d.joined_date),
        'isActive': d.user.is_active,
    }


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsClerkOrReadOnly])
def doctors_list(request):
    """Directory used for booking; clerks may POST to add a doctor."""
    if request.method == 'GET':
        return api_response([
            {'id': str(d.id), 'name': d.user.full_name, 'specialization': d.specialization}
            for d in svc.list_doctors()
        ])
    s = DoctorCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    doctor = svc.create_doctor(request.user, **s.to_service_kwargs())
    return api_response(_serialize(doctor), status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated, IsClerkOrReadOnly])
def doctor_detail(request, pk: str):
    if request.method == 'GET':
        return api_response(_serialize(svc.get_doctor(pk)))
    if request.method == 'PUT':
        s = DoctorUpdateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        return api_response(_serialize(svc.update_doctor(request.user, pk, s.to_service_data())))
    svc.deactivate_doctor(request.user, pk)
    return api_response({'message': 'Doctor deactivated successfully'})
