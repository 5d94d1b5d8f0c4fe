import abc
import logging
import re
from dataclasses import dataclass
from typing import Any

from django import forms
from django.core.exceptions import ValidationError
from django.core.validators import EMPTY_VALUES
from django.utils.translation import gettext_lazy as _

from activemail import signals
from activemail.conf import get_setting
from activemail.exceptions import ConfigurationError
from activemail.hooks import BEFORE_SEND, ActiveMessageEvent, hooks, run_chain
from activemail.mailer import get_mailer
from activemail.storage import get_template_storage

logger = logging.getLogger("activemail")

TOKEN_PATTERN = re.compile(r"\{([^{}]+)\}")


def is_empty(value):
    return value in EMPTY_VALUES


def _has_abstract_methods(cls):
    # __abstractmethods__ is not yet computed while __init_subclass__ runs.
    return any(
        getattr(getattr(cls, name, None), "__isabstractmethod__", False)
        for name in dir(cls)
    )


@dataclass
class FieldState:
    """Explicit value of a message field and whether it has been resolved."""

    value: Any = None
    resolved: bool = False

    def assign(self, value):
        self.value = value
        self.resolved = not is_empty(value)

    def resolve(self, default):
        if not self.resolved:
            self.value = default()
            self.resolved = True
        return self.value


class MessageField:
    """
    Message field with a lazily computed default.

    Reading an unset (or empty) field calls ``default_<name>()`` on the
    message once; the result is kept for every later read.
    """

    def __set_name__(self, owner, name):
        self.name = name
        self.default_method = f"default_{name}"

    def __get__(self, instance, owner=None):
        if instance is None:
            return self
        return self._state(instance).resolve(getattr(instance, self.default_method))

    def __set__(self, instance, value):
        self._state(instance).assign(value)

    def _state(self, instance):
        return instance._field_states.setdefault(self.name, FieldState())


class ActiveMessage(abc.ABC):
    """
    ActiveMessage represents a particular mail sending process.

    It combines the data and the logic for composing and sending one kind
    of email. For each mail sending event in the application a subclass
    should be created::

        class ContactUs(ActiveMessage):
            data_attributes = ("name", "email", "message")

            def default_from_email(self):
                return settings.DEFAULT_FROM_EMAIL

            def default_to(self):
                return [admin_email for _, admin_email in settings.ADMINS]

            def default_subject(self):
                return "Contact message from {name}"

            def default_body_html(self):
                return "<p>{message}</p><p>{name} &lt;{email}&gt;</p>"

        ContactUs(name="Ann", email="ann@example.com", message="Hi").send()

    Stored templates (see :mod:`activemail.storage`) may override any field
    or data attribute at send time, keyed by :meth:`template_name`.
    """

    FIELDS = ("from_email", "to", "subject", "body_text", "body_html")
    PARSED_FIELDS = ("subject", "body_text", "body_html")

    #: Names of the public data attributes of this message.
    data_attributes = ()

    from_email = MessageField()
    to = MessageField()
    subject = MessageField()
    body_text = MessageField()
    body_html = MessageField()

    _registry = {}

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        if not _has_abstract_methods(cls):
            ActiveMessage._registry[cls.__name__] = cls

    def __init__(self, mailer=None, template_storage=None, before_send_hooks=None, **attributes):
        self._field_states = {}
        self._errors = {}
        self._mailer = mailer
        self._template_storage = template_storage
        self.before_send_hooks = list(before_send_hooks or [])

        for name in self.attributes():
            setattr(self, name, None)

        unknown = set(attributes) - self.settable_attributes()
        if unknown:
            raise TypeError(
                f"{type(self).__name__}() got unexpected keyword argument(s): "
                f"{', '.join(sorted(unknown))}"
            )
        self.set_attributes(attributes)

    @classmethod
    def registered_messages(cls):
        """Return ``{template_name: message_class}`` for every concrete message."""
        return dict(cls._registry)

    # ------------------------------------------------------------------
    # Collaborators
    # ------------------------------------------------------------------

    def get_mailer(self):
        if self._mailer is None:
            self._mailer = get_mailer()
        return self._mailer

    def get_template_storage(self):
        if self._template_storage is None:
            self._template_storage = get_template_storage()
        return self._template_storage

    # ------------------------------------------------------------------
    # Attributes
    # ------------------------------------------------------------------

    def attributes(self):
        """Return the data attribute names, in declaration order."""
        return list(self.data_attributes)

    def settable_attributes(self):
        return set(self.FIELDS) | set(self.attributes())

    def get_attributes(self):
        return {name: getattr(self, name) for name in self.attributes()}

    def set_attributes(self, values):
        for name, value in values.items():
            if name in self.settable_attributes():
                setattr(self, name, value)

    def attribute_label(self, name):
        return name.replace("_", " ").capitalize()

    # ------------------------------------------------------------------
    # Defaults
    # ------------------------------------------------------------------

    @abc.abstractmethod
    def default_from_email(self):
        """Return the default sender."""

    @abc.abstractmethod
    def default_to(self):
        """Return the default receiver(s)."""

    @abc.abstractmethod
    def default_subject(self):
        """Return the default subject."""

    @abc.abstractmethod
    def default_body_html(self):
        """Return the default HTML body."""

    def default_body_text(self):
        """Return the default plain text body."""
        return get_setting("DEFAULT_BODY_TEXT")

    def view_name(self):
        """Return the template used to render the final message body."""
        return get_setting("VIEW_NAME")

    def template_name(self):
        """Return the name under which stored templates for this message are kept."""
        return type(self).__name__

    def template_data_hints(self):
        """
        Return hints for the template data, in format ``{name: hint}``.

        Hints can be shown while composing an edit form for the mail template.
        """
        return {}

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def rules(self):
        """
        Return validation rules as ``[(attribute_names, form_field), ...]``.

        By default every data attribute is required.
        """
        required = forms.Field(
            required=True,
            error_messages={"required": _("%(attribute)s cannot be blank.")},
        )
        return [(self.attributes(), required)]

    def validate(self):
        self._errors = {}
        for names, field in self.rules():
            for name in names:
                try:
                    field.clean(getattr(self, name))
                except ValidationError as exc:
                    for error in exc.error_list:
                        error.params = {
                            "attribute": self.attribute_label(name),
                            **(error.params or {}),
                        }
                        self.add_error(name, next(iter(error)))
        return not self.has_errors()

    def add_error(self, name, message):
        self._errors.setdefault(name, []).append(message)

    def get_errors(self):
        return {name: list(errors) for name, errors in self._errors.items()}

    def has_errors(self):
        return bool(self._errors)

    def get_error_summary(self, glue="\n"):
        """Return all error messages of this message joined by *glue*."""
        summary_parts = []
        for attribute_errors in self.get_errors().values():
            summary_parts.extend(attribute_errors)
        return glue.join(summary_parts)

    # ------------------------------------------------------------------
    # Composition
    # ------------------------------------------------------------------

    def parse_template(self, template, data=None):
        """
        Replace ``{name}`` tokens in *template* with values from *data*.

        Replacement is a single pass: inserted values are not scanned again,
        and tokens missing from *data* are left untouched.
        """
        if not data or not template:
            return template

        def replace(match):
            name = match.group(1)
            if name not in data:
                return match.group(0)
            value = data[name]
            return "" if value is None else str(value)

        return TOKEN_PATTERN.sub(replace, str(template))

    def compose_template_data(self):
        """
        Return the data used to parse the message fields.

        Defaults to the current data attributes. Subclasses may override
        this to add or remove keys.
        """
        return self.get_attributes()

    def apply_template(self):
        """Apply the stored template for this message, if one exists."""
        template_attributes = self.get_template_storage().get_template(self.template_name())
        if not template_attributes:
            return

        settable = self.settable_attributes()
        applied = []
        for name, value in template_attributes.items():
            if name in settable:
                setattr(self, name, value)
                applied.append(name)
                continue

            if get_setting("STRICT_TEMPLATE_ATTRIBUTES"):
                raise ConfigurationError(
                    f"Template '{self.template_name()}' sets unknown attribute '{name}'."
                )
            logger.warning(
                "Template '%s' sets unknown attribute '%s'; ignored",
                self.template_name(),
                name,
            )

        signals.template_applied.send(
            sender=type(self), active_message=self, attributes=applied
        )

    def apply_parse(self, data):
        """Parse subject and bodies against *data*."""
        for name in self.PARSED_FIELDS:
            setattr(self, name, self.parse_template(getattr(self, name), data))

    # ------------------------------------------------------------------
    # Sending
    # ------------------------------------------------------------------

    def send(self, run_validation=True):
        """
        Send this message.

        Args:
            run_validation: Whether to validate the message before sending.

        Returns:
            True if the mailer delivered the message, False if delivery
            failed or a pre-send hook cancelled it.

        Raises:
            ConfigurationError: If validation fails.
        """
        if run_validation and not self.validate():
            raise ConfigurationError(
                "Unable to send message: " + self.get_error_summary()
            )

        data = self.compose_template_data()

        self.apply_template()
        self.apply_parse(data)

        data["active_message"] = self

        mail_message = (
            self.get_mailer()
            .compose(self.view_name(), data)
            .set_subject(self.subject)
            .set_to(self.to)
            .set_from(self.from_email)
            .set_reply_to(self.from_email)
        )

        if not self.before_send(mail_message):
            signals.message_vetoed.send(
                sender=type(self), active_message=self, mail_message=mail_message
            )
            return False

        result = bool(self.get_mailer().send(mail_message))
        signals.message_sent.send(
            sender=type(self),
            active_message=self,
            mail_message=mail_message,
            result=result,
        )
        return result

    def before_send(self, mail_message):
        """
        Invoked before the mail message is sent.

        The default implementation sends the ``before_send`` signal and then
        runs the instance hooks followed by the globally registered
        ``before_send`` hooks. Returns whether the message should be sent.
        """
        event = ActiveMessageEvent(mail_message=mail_message, active_message=self)
        signals.before_send.send(sender=type(self), active_message=self, event=event)

        if event.proceed:
            chain = self.before_send_hooks + hooks.get_hooks(BEFORE_SEND)
            event.proceed = run_chain(chain, mail_message)
        return event.proceed
