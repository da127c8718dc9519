"""
WSGI config for publicprep.
"""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "publicprep.settings")

application = get_wsgi_application()
