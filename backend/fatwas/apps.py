from django.apps import AppConfig


class FatwasConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "fatwas"
