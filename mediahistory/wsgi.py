"""
WSGI config for the mediahistory project.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "mediahistory.settings")

application = get_wsgi_application()
