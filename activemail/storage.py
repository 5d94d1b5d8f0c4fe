import abc
import json
import logging
import os

from django.core.cache import caches
from django.utils.module_loading import import_string

from activemail.conf import get_setting
from activemail.exceptions import ConfigurationError

logger = logging.getLogger("activemail")


class TemplateStorage(abc.ABC):
    """
    Abstract base class for mail template storages.

    A template is a mapping of message attribute names to values, looked up
    by the message template name (see ``ActiveMessage.template_name()``).
    Lookups may be cached in the Django cache when ``cache_timeout`` is set.
    """

    def __init__(self, cache_timeout=None, cache_alias=None):
        if cache_timeout is None:
            cache_timeout = get_setting("TEMPLATE_CACHE_TIMEOUT")
        self.cache_timeout = cache_timeout
        self.cache_alias = cache_alias or get_setting("TEMPLATE_CACHE_ALIAS")

    @abc.abstractmethod
    def find_template(self, name):
        """
        Look up the template attributes in the underlying store.

        Args:
            name: Template name.

        Returns:
            dict of template attributes, or None if no template exists.
        """
        ...

    def get_template(self, name):
        """
        Return the template attributes for *name*, or an empty dict if the
        store has no such template.
        """
        if self.cache_timeout is None:
            return self._normalize(self.find_template(name))

        cache = caches[self.cache_alias]
        key = self.get_cache_key(name)
        template = cache.get(key)
        if template is None:
            template = self._normalize(self.find_template(name))
            cache.set(key, template, self.cache_timeout)
        return template

    def get_cache_key(self, name):
        return f"activemail.template:{type(self).__name__}:{name}"

    def invalidate(self, name):
        """Drop the cached copy of template *name*, if caching is enabled."""
        if self.cache_timeout is not None:
            caches[self.cache_alias].delete(self.get_cache_key(name))

    @staticmethod
    def _normalize(template):
        if not template:
            return {}
        return dict(template)


class MemoryTemplateStorage(TemplateStorage):
    """Keeps templates in a plain dict: ``{name: {attribute: value}}``."""

    def __init__(self, templates=None, **kwargs):
        super().__init__(**kwargs)
        self.templates = dict(templates or {})

    def find_template(self, name):
        return self.templates.get(name)


class SettingsTemplateStorage(TemplateStorage):
    """Reads templates from ``ACTIVEMAIL["TEMPLATES"]``."""

    def find_template(self, name):
        return (get_setting("TEMPLATES") or {}).get(name)


class FileTemplateStorage(TemplateStorage):
    """
    Reads templates from JSON files, one file per template.

    The template named ``ContactUs`` lives in ``<directory>/ContactUs.json``
    and holds a JSON object of attribute values, e.g.::

        {"subject": "Hello {name}", "body_html": "<p>{message}</p>"}
    """

    def __init__(self, directory=None, **kwargs):
        super().__init__(**kwargs)
        directory = directory or get_setting("TEMPLATE_DIR")
        if not directory:
            raise ConfigurationError(
                "FileTemplateStorage requires a directory. "
                "Set ACTIVEMAIL['TEMPLATE_DIR'] in settings."
            )
        self.directory = str(directory)

    def get_file_path(self, name):
        return os.path.join(self.directory, f"{name}.json")

    def find_template(self, name):
        path = self.get_file_path(name)
        if not os.path.isfile(path):
            logger.debug("No template file for '%s' at %s", name, path)
            return None

        with open(path, encoding="utf-8") as fh:
            template = json.load(fh)

        if not isinstance(template, dict):
            raise ConfigurationError(
                f"Template file '{path}' must contain a JSON object."
            )
        return template


def get_template_storage():
    """
    Return the template storage configured by ACTIVEMAIL['TEMPLATE_STORAGE'].
    """
    path = get_setting("TEMPLATE_STORAGE")
    try:
        storage_class = import_string(path)
    except ImportError as exc:
        raise ConfigurationError(
            f"Invalid ACTIVEMAIL TEMPLATE_STORAGE: '{path}' ({exc})"
        ) from exc
    return storage_class()
