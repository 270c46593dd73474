"""Clinic application.

Accounts with Patient/Doctor/Clerk roles, their profiles and the
appointment book, exposed as a JSON API under ``/api/``.
"""
