from django.apps import AppConfig


class MarriagesConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "marriages"
