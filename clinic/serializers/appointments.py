"""
Request bodies for the appointment endpoints.

Ids and dates stay plain strings here; the appointment service parses
them so that each malformed value maps to its own error code.
"""
import bleach
from rest_framework import serializers


class AppointmentCreateSerializer(serializers.Serializer):
    patientId = serializers.CharField(required=False, allow_blank=True)
    doctorId = serializers.CharField(required=False, allow_blank=True)
    appointmentDate = serializers.CharField(required=False, allow_blank=True)
    reason = serializers.CharField(required=False, allow_blank=True, max_length=500)
    notes = serializers.CharField(required=False, allow_blank=True)

    def validate_reason(self, v):
        return bleach.clean((v or '').strip(), strip=True)

    def validate_notes(self, v):
        return bleach.clean((v or '').strip(), strip=True)


class AppointmentRescheduleSerializer(serializers.Serializer):
    appointmentDate = serializers.CharField(required=False, allow_blank=True)


class AppointmentStatusSerializer(serializers.Serializer):
    status = serializers.CharField(required=False, allow_blank=True)


class AppointmentCompleteSerializer(serializers.Serializer):
    doctorNotes = serializers.CharField(required=False, allow_blank=True, allow_null=True)

    def validate_doctorNotes(self, v):
        return bleach.clean((v or '').strip(), strip=True)


class AppointmentListQuerySerializer(serializers.Serializer):
    status = serializers.CharField(required=False, allow_blank=True)
    date = serializers.CharField(required=False, allow_blank=True)
    doctorId = serializers.CharField(required=False, allow_blank=True)
