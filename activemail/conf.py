from django.conf import settings


DEFAULTS = {
    # Template storage
    "TEMPLATE_STORAGE": "activemail.storage.SettingsTemplateStorage",
    "TEMPLATES": {},  # Used by SettingsTemplateStorage: {template_name: {attribute: value}}
    "TEMPLATE_DIR": None,  # Used by FileTemplateStorage
    "TEMPLATE_CACHE_TIMEOUT": None,  # None disables template caching
    "TEMPLATE_CACHE_ALIAS": "default",
    # Delivery
    "MAILER": "activemail.mailer.DjangoMailer",
    "FAIL_SILENTLY": False,
    # Composition
    "VIEW_NAME": "activemail/active_message.html",
    "DEFAULT_BODY_TEXT": "You need email client with HTML support to view this message.",
    "STRICT_TEMPLATE_ATTRIBUTES": False,
}


def get_setting(name):
    """
    Retrieve a setting from the ACTIVEMAIL dict in Django settings,
    falling back to DEFAULTS if not provided.
    """
    user_settings = getattr(settings, "ACTIVEMAIL", {})
    return user_settings.get(name, DEFAULTS.get(name))
