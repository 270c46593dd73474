import bleach
from rest_framework import serializers


def _clean(v):
    return bleach.clean((v or '').strip(), strip=True)


class PatientCreateSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(trim_whitespace=False, write_only=True)
    firstName = serializers.CharField(max_length=150)
    lastName = serializers.CharField(max_length=150)
    phone = serializers.CharField(required=False, allow_blank=True, max_length=32)
    dateOfBirth = serializers.DateField(required=False, allow_null=True)
    address = serializers.CharField(required=False, allow_blank=True, max_length=255)
    emergencyContactName = serializers.CharField(required=False, allow_blank=True, max_length=100)
    emergencyContactPhone = serializers.CharField(required=False, allow_blank=True, max_length=32)

    def validate_firstName(self, v):
        return _clean(v)

    def validate_lastName(self, v):
        return _clean(v)

    def validate_address(self, v):
        return _clean(v)

    def validate_emergencyContactName(self, v):
        return _clean(v)

    def to_service_kwargs(self) -> dict:
        vd = self.validated_data
        return {
            'email': vd['email'],
            'password': vd['password'],
            'first_name': vd['firstName'],
            'last_name': vd['lastName'],
            'phone': vd.get('phone', ''),
            'date_of_birth': vd.get('dateOfBirth'),
            'address': vd.get('address', ''),
            'emergency_contact_name': vd.get('emergencyContactName', ''),
            'emergency_contact_phone': vd.get('emergencyContactPhone', ''),
        }


class PatientUpdateSerializer(serializers.Serializer):
    firstName = serializers.CharField(required=False, allow_null=True, max_length=150)
    lastName = serializers.CharField(required=False, allow_null=True, max_length=150)
    phone = serializers.CharField(required=False, allow_null=True, allow_blank=True, max_length=32)
    dateOfBirth = serializers.DateField(required=False, allow_null=True)

    def validate_firstName(self, v):
        return _clean(v) if v is not None else None

    def validate_lastName(self, v):
        return _clean(v) if v is not None else None

    def to_service_data(self) -> dict:
        vd = self.validated_data
        data = {
            'first_name': vd.get('firstName'),
            'last_name': vd.get('lastName'),
            'phone': vd.get('phone'),
        }
        if 'dateOfBirth' in vd:
            data['date_of_birth'] = vd['dateOfBirth']
        return data


class PatientNotesSerializer(serializers.Serializer):
    notes = serializers.CharField(allow_blank=True)

    def validate_notes(self, v):
        return _clean(v)


class PatientListQuerySerializer(serializers.Serializer):
    search = serializers.CharField(required=False, allow_blank=True, max_length=100)
