from django.apps import AppConfig


class DebtCollectionConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'debt_collection'

    def ready(self):
        # Import signal handlers
        from . import signals  # noqa: F401
