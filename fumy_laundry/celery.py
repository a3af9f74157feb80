# fumy_laundry/celery.py
import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "fumy_laundry.settings")

app = Celery("fumy_laundry")
app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()
