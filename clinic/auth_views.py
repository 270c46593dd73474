"""
Authentication endpoints.

Login hands out a simplejwt refresh/access pair whose claims carry the
caller's role and role-scoped id.  Registration creates an inactive
account that a clerk has to approve.  Kept apart from
``clinic.authentication`` so DRF can import the authentication class
without pulling in the views.
"""
from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import AuthenticationFailed
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.serializers import TokenRefreshSerializer

from .errors import ClinicError, ErrorKind
from .exceptions import api_response, error_response
from .middleware import client_ip
from .serializers.auth import (
    ForgotPasswordSerializer,
    LoginSerializer,
    RefreshTokenSerializer,
    RegisterSerializer,
    ResetPasswordSerializer,
)
from .services import accounts


@api_view(['POST'])
@permission_classes([AllowAny])
def login_view(request):
    s = LoginSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    payload = accounts.login(vd['email'], vd['password'], ip=client_ip(request))
    return api_response(payload)

# ScopedRateThrottle reads throttle_scope from the wrapped view class
login_view.cls.throttle_scope = 'login'


@api_view(['POST'])
@permission_classes([AllowAny])
def register_view(request):
    s = RegisterSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    user = accounts.register(actor_ip=client_ip(request), **s.to_service_kwargs())
    return api_response({
        'userId': str(user.id),
        'email': user.email,
        'firstName': user.first_name,
        'lastName': user.last_name,
        'role': user.role,
        'message': 'Registration successful. Your account is pending approval by a clerk.',
    }, status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([AllowAny])
def forgot_password_view(request):
    s = ForgotPasswordSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    accounts.send_password_reset(s.validated_data['email'])
    return api_response({'message': 'If the address is registered, a reset code has been sent.'})

forgot_password_view.cls.throttle_scope = 'password_reset'


@api_view(['POST'])
@permission_classes([AllowAny])
def reset_password_view(request):
    s = ResetPasswordSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    accounts.reset_password(vd['email'], vd['token'], vd['newPassword'], vd['confirmPassword'])
    return api_response({'message': 'Password has been reset successfully'})

reset_password_view.cls.throttle_scope = 'password_reset'


@api_view(['POST'])
@permission_classes([AllowAny])
def jwt_refresh_view(request):
    """Exchange ``refreshToken`` for a new access (and rotated refresh) token."""
    s = RefreshTokenSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    raw = s.validated_data['refreshToken']
    refresh = TokenRefreshSerializer(data={'refresh': raw})
    try:
        refresh.is_valid(raise_exception=True)
    except (TokenError, AuthenticationFailed):
        return error_response(ErrorKind.INVALID_TOKEN.value, 'Invalid or expired refresh token',
                              status.HTTP_401_UNAUTHORIZED)
    data = refresh.validated_data
    return api_response({
        'token': data['access'],
        'refreshToken': data.get('refresh', raw),
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def jwt_logout_view(request):
    """Blacklist the given refresh token."""
    s = RefreshTokenSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    try:
        accounts.blacklist_refresh(s.validated_data['refreshToken'])
    except TokenError:
        raise ClinicError(ErrorKind.INVALID_TOKEN)
    return api_response({'message': 'Logged out successfully'})

