from django.apps import AppConfig


class ImporterAppConfig(AppConfig):
    name = "importer"
    verbose_name = "Importer"

    def ready(self):
        from . import signals  # NOQA
