"""
Current-user profile and clerk approval of pending accounts.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated

from ..exceptions import api_response
from ..models import User
from ..permissions import IsClerkRole
from ..serializers.users import PasswordChangeSerializer, ProfileUpdateSerializer
from ..services import accounts
from .appointments import iso


def serialize_user(user: User) -> dict:
    profile = user.profile
    data = {
        'userId': str(user.id),
        'email': user.email,
        'firstName': user.first_name,
        'lastName': user.last_name,
        'phone': user.phone,
        'role': user.role,
        'roleSpecificId': str(profile.id) if profile is not None else None,
        'isActive': user.is_active,
        'createdAt': iso(user.date_joined),
        'lastLoginAt': iso(user.last_login),
        'patientInfo': None,
        'doctorInfo': None,
    }
    if user.role == User.ROLE_PATIENT and profile is not None:
        data['patientInfo'] = {
            'patientId': str(profile.id),
            'dateOfBirth': iso(profile.date_of_birth),
            'address': profile.address,
            'emergencyContactName': profile.emergency_contact_name,
            'emergencyContactPhone': profile.emergency_contact_phone,
        }
    elif user.role == User.ROLE_DOCTOR and profile is not None:
        data['doctorInfo'] = {
            'doctorId': str(profile.id),
            'specialization': profile.specialization,
            'licenseNumber': profile.license_number,
            'yearsOfExperience': profile.years_of_experience,
        }
    return data


@api_view(['GET', 'PUT'])
@permission_classes([IsAuthenticated])
def me(request):
    user: User = request.user
    if request.method == 'GET':
        return api_response(serialize_user(user))
    s = ProfileUpdateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    accounts.update_profile(user, {
        'first_name': vd.get('firstName'),
        'last_name': vd.get('lastName'),
        'phone': vd.get('phone'),
        'date_of_birth': vd.get('dateOfBirth'),
        'address': vd.get('address'),
        'emergency_contact_name': vd.get('emergencyContactName'),
        'emergency_contact_phone': vd.get('emergencyContactPhone'),
    })
    return api_response(serialize_user(user))


@api_view(['PUT'])
@permission_classes([IsAuthenticated])
def change_password(request):
    s = PasswordChangeSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    accounts.change_password(request.user, vd['currentPassword'], vd['newPassword'], vd['confirmPassword'])
    return api_response({'message': 'Password updated successfully'})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsClerkRole])
def pending_users(request):
    return api_response([serialize_user(u) for u in accounts.pending_users()])


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsClerkRole])
def approve_user(request, pk: str):
    user = accounts.approve_user(request.user, pk)
    return api_response({'message': 'User approved successfully', 'userId': str(user.id)})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsClerkRole])
def reject_user(request, pk: str):
    user_id = accounts.reject_user(request.user, pk)
    return api_response({'message': 'User rejected successfully', 'userId': user_id})
