import bleach
from rest_framework import serializers


def _clean(v):
    return bleach.clean((v or '').strip(), strip=True)


class DoctorCreateSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(trim_whitespace=False, write_only=True)
    firstName = serializers.CharField(max_length=150)
    lastName = serializers.CharField(max_length=150)
    phone = serializers.CharField(required=False, allow_blank=True, max_length=32)
    specialization = serializers.CharField(max_length=100)
    licenseNumber = serializers.CharField(required=False, allow_blank=True, max_length=50)
    yearsOfExperience = serializers.IntegerField(required=False, allow_null=True, min_value=0, max_value=80)

    def validate_firstName(self, v):
        return _clean(v)

    def validate_lastName(self, v):
        return _clean(v)

    def validate_specialization(self, v):
        v = _clean(v)
        if not v:
            raise serializers.ValidationError('Specialization is required')
        return v

    def to_service_kwargs(self) -> dict:
        vd = self.validated_data
        return {
            'email': vd['email'],
            'password': vd['password'],
            'first_name': vd['firstName'],
            'last_name': vd['lastName'],
            'phone': vd.get('phone', ''),
            'specialization': vd['specialization'],
            'license_number': vd.get('licenseNumber', ''),
            'years_of_experience': vd.get('yearsOfExperience'),
        }


class DoctorUpdateSerializer(serializers.Serializer):
    firstName = serializers.CharField(required=False, allow_null=True, max_length=150)
    lastName = serializers.CharField(required=False, allow_null=True, max_length=150)
    phone = serializers.CharField(required=False, allow_null=True, allow_blank=True, max_length=32)
    specialization = serializers.CharField(required=False, allow_null=True, max_length=100)
    licenseNumber = serializers.CharField(required=False, allow_null=True, allow_blank=True, max_length=50)
    yearsOfExperience = serializers.IntegerField(required=False, allow_null=True, min_value=0, max_value=80)
    isActive = serializers.BooleanField(required=False, allow_null=True)

    def validate_specialization(self, v):
        return _clean(v) if v is not None else None

    def to_service_data(self) -> dict:
        vd = self.validated_data
        return {
            'first_name': vd.get('firstName'),
            'last_name': vd.get('lastName'),
            'phone': vd.get('phone'),
            'specialization': vd.get('specialization'),
            'license_number': vd.get('licenseNumber'),
            'years_of_experience': vd.get('yearsOfExperience'),
            'is_active': vd.get('isActive'),
        }
