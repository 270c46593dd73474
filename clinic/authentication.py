"""
Bearer-token authentication for the API.

Access tokens are simplejwt JWTs issued by ``clinic.services.accounts``
and carry two extra claims, ``role`` and ``roleSpecificId``, which are
checked against the database on every authenticated request.
"""
from __future__ import annotations

from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework_simplejwt.exceptions import AuthenticationFailed

from .services.scheduling import resolve_principal


class ClinicJWTAuthentication(JWTAuthentication):
    """JWT authentication that also rejects users without a clinic role
    and tokens whose identity claims disagree with the account (403).

    Inactive users are already refused by simplejwt itself.
    """

    def get_user(self, validated_token):
        user = super().get_user(validated_token)
        if not getattr(user, 'role', None):
            raise AuthenticationFailed('User has no clinic role', code='no_role')
        resolve_principal(user, validated_token)
        return user
