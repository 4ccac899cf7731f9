"""WSGI config for the hotel ledger backend."""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'hotel_ledger_backend.settings')

application = get_wsgi_application()
