from django.apps import AppConfig


class PricingAppConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "modules.pricing"
    label = "pricing"
