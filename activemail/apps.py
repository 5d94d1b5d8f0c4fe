from django.apps import AppConfig
from django.utils.module_loading import autodiscover_modules


class ActiveMailConfig(AppConfig):
    name = "activemail"
    verbose_name = "Active Mail"

    def ready(self):
        import activemail.handlers  # noqa: F401 - connects signal handlers

        # Register message classes declared in <app>/active_messages.py
        autodiscover_modules("active_messages")
