"""
ASGI config for the clinic project.

Serves the same HTTP application as ``wsgi.py`` for ASGI servers such
as uvicorn or daphne.
"""
import os

from django.core.asgi import get_asgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "clinicapi.settings")

application = get_asgi_application()
