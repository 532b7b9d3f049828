from django.apps import AppConfig


class ReconciliationsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "reconciliations"
