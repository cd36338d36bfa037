"""
WSGI config for the InCampus project (HTTP only; websockets need ASGI).
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'incampus.settings')

application = get_wsgi_application()
