# laundry_core/apps.py

from django.apps import AppConfig


class LaundryCoreConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "laundry_core"
    verbose_name = "Laundry"

    def ready(self):
        from . import signals  # noqa
