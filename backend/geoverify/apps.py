from django.apps import AppConfig


class GeoverifyConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'geoverify'
    verbose_name = 'Location verification'

    def ready(self):
        from geoverify.location_engine.tables import get_tables

        # A bad GEOVERIFY_TABLES_FILE raises TableConfigurationError here, at startup.
        get_tables()
