import bleach
from rest_framework import serializers

from clinic.models import User


def clean_text(v):
    return bleach.clean((v or '').strip(), strip=True)


class LoginSerializer(serializers.Serializer):
    email = serializers.CharField()
    password = serializers.CharField(trim_whitespace=False)

    def validate_email(self, v):
        v = (v or '').strip()
        if not v:
            raise serializers.ValidationError('Email is required')
        return v


class RegisterSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(trim_whitespace=False, write_only=True)
    firstName = serializers.CharField(max_length=150)
    lastName = serializers.CharField(max_length=150)
    phone = serializers.CharField(required=False, allow_blank=True, max_length=32)
    role = serializers.ChoiceField(choices=[c for c, _ in User.ROLE_CHOICES])
    dateOfBirth = serializers.DateField(required=False, allow_null=True)
    specialization = serializers.CharField(required=False, allow_blank=True, max_length=100)

    def validate_firstName(self, v):
        v = clean_text(v)
        if not v:
            raise serializers.ValidationError('First name is required')
        return v

    def validate_lastName(self, v):
        v = clean_text(v)
        if not v:
            raise serializers.ValidationError('Last name is required')
        return v

    def validate_phone(self, v):
        return clean_text(v)

    def validate_specialization(self, v):
        return clean_text(v)

    def to_service_kwargs(self) -> dict:
        vd = self.validated_data
        return {
            'email': vd['email'],
            'password': vd['password'],
            'first_name': vd['firstName'],
            'last_name': vd['lastName'],
            'phone': vd.get('phone', ''),
            'role': vd['role'],
            'date_of_birth': vd.get('dateOfBirth'),
            'specialization': vd.get('specialization') or None,
        }


class ForgotPasswordSerializer(serializers.Serializer):
    email = serializers.EmailField()


class ResetPasswordSerializer(serializers.Serializer):
    email = serializers.EmailField()
    token = serializers.CharField()
    newPassword = serializers.CharField(trim_whitespace=False)
    confirmPassword = serializers.CharField(trim_whitespace=False)


class RefreshTokenSerializer(serializers.Serializer):
    refreshToken = serializers.CharField()
