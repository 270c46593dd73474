"""
URL mappings for the clinic API.

Trailing slashes are omitted throughout.  ``available-slots`` must stay
ahead of the ``<pk>`` route it would otherwise be captured by.
"""
from django.urls import path, include

from .auth_views import (
    forgot_password_view,
    jwt_logout_view,
    jwt_refresh_view,
    login_view,
    register_view,
    reset_password_view,
)
from .views import appointments, dashboard, doctors, health, patients, users

urlpatterns = [
    path('', include('django_prometheus.urls')),
    path('healthz', health.healthz, name='healthz'),
    # Authentication
    path('api/auth/login', login_view, name='login_view'),
    path('api/auth/register', register_view, name='register_view'),
    path('api/auth/forgot-password', forgot_password_view, name='forgot_password_view'),
    path('api/auth/reset-password', reset_password_view, name='reset_password_view'),
    path('api/auth/refresh', jwt_refresh_view, name='jwt_refresh_view'),
    path('api/auth/logout', jwt_logout_view, name='jwt_logout_view'),
    path('api/auth/health', health.healthz, name='auth_health'),
    # Users
    path('api/users/me', users.me, name='users_me'),
    path('api/users/me/password', users.change_password, name='users_me_password'),
    path('api/users/pending', users.pending_users, name='users_pending'),
    path('api/users/<str:pk>/approve', users.approve_user, name='users_approve'),
    path('api/users/<str:pk>/reject', users.reject_user, name='users_reject'),
    # Appointments
    path('api/appointments', appointments.appointments_list, name='appointments_list'),
    path('api/appointments/available-slots', appointments.available_slots, name='appointments_available_slots'),
    path('api/appointments/<str:pk>', appointments.appointment_detail, name='appointment_detail'),
    path('api/appointments/<str:pk>/status', appointments.appointment_status, name='appointment_status'),
    path('api/appointments/<str:pk>/complete', appointments.appointment_complete, name='appointment_complete'),
    # Patients
    path('api/patients', patients.patients_list, name='patients_list'),
    path('api/patients/<str:pk>', patients.patient_detail, name='patient_detail'),
    path('api/patients/<str:pk>/notes', patients.patient_notes, name='patient_notes'),
    path('api/patients/<str:pk>/medical-history', patients.medical_history, name='patient_medical_history'),
    # Doctors
    path('api/doctors', doctors.doctors_list, name='doctors_list'),
    path('api/doctors/<str:pk>', doctors.doctor_detail, name='doctor_detail'),
    # Dashboards
    path('api/clerk/dashboard', dashboard.clerk_dashboard, name='clerk_dashboard'),
    path('api/doctor/dashboard', dashboard.doctor_dashboard, name='doctor_dashboard'),
]
