import bleach
from rest_framework import serializers


class ProfileUpdateSerializer(serializers.Serializer):
    firstName = serializers.CharField(required=False, allow_null=True, max_length=150)
    lastName = serializers.CharField(required=False, allow_null=True, max_length=150)
    phone = serializers.CharField(required=False, allow_null=True, allow_blank=True, max_length=32)
    # patient-only fields, ignored for other roles
    dateOfBirth = serializers.DateField(required=False, allow_null=True)
    address = serializers.CharField(required=False, allow_null=True, allow_blank=True, max_length=255)
    emergencyContactName = serializers.CharField(required=False, allow_null=True, allow_blank=True, max_length=100)
    emergencyContactPhone = serializers.CharField(required=False, allow_null=True, allow_blank=True, max_length=32)

    def validate(self, attrs):
        for key in ('firstName', 'lastName', 'phone', 'address', 'emergencyContactName', 'emergencyContactPhone'):
            if attrs.get(key) is not None:
                attrs[key] = bleach.clean(attrs[key].strip(), strip=True)
        return attrs


class PasswordChangeSerializer(serializers.Serializer):
    currentPassword = serializers.CharField(trim_whitespace=False)
    newPassword = serializers.CharField(trim_whitespace=False)
    confirmPassword = serializers.CharField(trim_whitespace=False)
