"""
WSGI config for fumy_laundry project.
"""

import os
from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "fumy_laundry.settings")
application = get_wsgi_application()
