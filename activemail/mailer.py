import abc
import logging

from django.core.mail import EmailMultiAlternatives
from django.template.loader import render_to_string
from django.utils.html import strip_tags
from django.utils.module_loading import import_string

from activemail.conf import get_setting
from activemail.exceptions import ConfigurationError

logger = logging.getLogger("activemail")


def _as_list(value):
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return list(value)


class MailMessage:
    """
    Transport-level message produced by a mailer.

    Wraps a Django ``EmailMultiAlternatives`` and exposes fluent setters,
    each of which mutates the message and returns it.
    """

    def __init__(self, email):
        self.email = email

    def set_subject(self, subject):
        self.email.subject = subject
        return self

    def set_to(self, to):
        self.email.to = _as_list(to)
        return self

    def set_cc(self, cc):
        self.email.cc = _as_list(cc)
        return self

    def set_from(self, from_email):
        self.email.from_email = from_email
        return self

    def set_reply_to(self, reply_to):
        self.email.reply_to = _as_list(reply_to)
        return self

    @property
    def subject(self):
        return self.email.subject

    @property
    def to(self):
        return self.email.to

    @property
    def from_email(self):
        return self.email.from_email

    @property
    def reply_to(self):
        return self.email.reply_to

    @property
    def body(self):
        return self.email.body

    @property
    def html_body(self):
        for content, mimetype in self.email.alternatives:
            if mimetype == "text/html":
                return content
        return None

    def __repr__(self):
        return f"<MailMessage subject={self.subject!r} to={self.to!r}>"


class Mailer(abc.ABC):
    """Abstract base class for mailers used by active messages."""

    @abc.abstractmethod
    def compose(self, view_name, data) -> MailMessage:
        """
        Build a transport message by rendering *view_name* with *data*.

        Args:
            view_name: Template used to render the message body.
            data: Template context dict.
        """
        ...

    @abc.abstractmethod
    def send(self, mail_message) -> bool:
        """Deliver *mail_message*. Returns True on success."""
        ...


class DjangoMailer(Mailer):
    """
    Mailer backed by Django's email framework.

    The HTML body is rendered from the view template and attached as a
    ``text/html`` alternative. The plain-text body comes from the active
    message in the context, or from the HTML with tags stripped.
    """

    def __init__(self, connection=None, fail_silently=None):
        self.connection = connection
        if fail_silently is None:
            fail_silently = get_setting("FAIL_SILENTLY")
        self.fail_silently = fail_silently

    def compose(self, view_name, data):
        html_body = render_to_string(view_name, data)

        active_message = data.get("active_message")
        if active_message is not None:
            text_body = active_message.body_text
        else:
            text_body = strip_tags(html_body)

        email = EmailMultiAlternatives(body=text_body, connection=self.connection)
        email.attach_alternative(html_body, "text/html")
        return MailMessage(email)

    def send(self, mail_message):
        sent = mail_message.email.send(fail_silently=self.fail_silently)
        logger.debug("Mailer delivered %d message(s) for %r", sent, mail_message)
        return sent > 0


def get_mailer():
    """
    Return the mailer configured by ACTIVEMAIL['MAILER'].
    """
    path = get_setting("MAILER")
    try:
        mailer_class = import_string(path)
    except ImportError as exc:
        raise ConfigurationError(
            f"Invalid ACTIVEMAIL MAILER: '{path}' ({exc})"
        ) from exc
    return mailer_class()
