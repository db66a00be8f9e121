"""
WSGI config for library_console project.
"""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'library_console.settings')

application = get_wsgi_application()
