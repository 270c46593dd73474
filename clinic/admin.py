"""
Django admin registrations for the clinic models.

Read-mostly views for superusers under ``/admin/``; day-to-day work
goes through the API.
"""

from django.contrib import admin

from .models import (
    Appointment,
    AuditEvent,
    ClerkProfile,
    DoctorProfile,
    PatientProfile,
    User,
)


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ('email', 'first_name', 'last_name', 'role', 'is_active', 'date_joined')
    list_filter = ('role', 'is_active')
    search_fields = ('email', 'first_name', 'last_name')
    ordering = ('email',)


@admin.register(PatientProfile)
class PatientProfileAdmin(admin.ModelAdmin):
    list_display = ('user', 'date_of_birth', 'registration_date')
    search_fields = ('user__email', 'user__first_name', 'user__last_name')


@admin.register(DoctorProfile)
class DoctorProfileAdmin(admin.ModelAdmin):
    list_display = ('user', 'specialization', 'license_number', 'years_of_experience')
    list_filter = ('specialization',)
    search_fields = ('user__email', 'user__last_name', 'license_number')


@admin.register(ClerkProfile)
class ClerkProfileAdmin(admin.ModelAdmin):
    list_display = ('user', 'department', 'hire_date')


@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    list_display = ('appointment_date', 'doctor', 'patient', 'status', 'created_at')
    list_filter = ('status', 'doctor')
    search_fields = ('patient__user__email', 'doctor__user__email', 'reason')
    date_hierarchy = 'appointment_date'


@admin.register(AuditEvent)
class AuditEventAdmin(admin.ModelAdmin):
    list_display = ('created_at', 'action', 'user', 'object_type', 'object_id')
    list_filter = ('action', 'object_type')
    readonly_fields = ('created_at',)
