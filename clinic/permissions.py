"""
Role based permission classes.

Appointment ownership rules live in ``clinic.services.scheduling``;
these classes only gate whole endpoints by role.
"""
from rest_framework.permissions import BasePermission, SAFE_METHODS

from .models import User


def _has_role(request, roles) -> bool:
    user = getattr(request, "user", None)
    return bool(user and user.is_authenticated and getattr(user, "role", None) in roles)


class IsDoctorRole(BasePermission):
    """Allow access only to doctors."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return _has_role(request, {User.ROLE_DOCTOR})


class IsClerkRole(BasePermission):
    """Allow access only to clerks."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return _has_role(request, {User.ROLE_CLERK})


class IsDoctorOrClerk(BasePermission):
    """Staff: doctors or clerks."""
    def has_permission(self, request, view) -> bool:
        return _has_role(request, {User.ROLE_DOCTOR, User.ROLE_CLERK})


class IsClerkOrReadOnly(BasePermission):
    """Any authenticated user may read; only clerks may write."""
    def has_permission(self, request, view) -> bool:
        if request.method in SAFE_METHODS:
            return _has_role(request, {User.ROLE_PATIENT, User.ROLE_DOCTOR, User.ROLE_CLERK})
        return _has_role(request, {User.ROLE_CLERK})
