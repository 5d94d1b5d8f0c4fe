from django.core.exceptions import ImproperlyConfigured


class ConfigurationError(ImproperlyConfigured):
    """
    Raised when an active message cannot be sent because it, or one of its
    collaborators, is misconfigured.

    A vetoed send or a transport failure is not an error: ``send()`` returns
    False in those cases.
    """
