import logging

from django.dispatch import receiver

from activemail.signals import message_sent, message_vetoed, template_applied

logger = logging.getLogger("activemail")


@receiver(template_applied)
def on_template_applied(sender, active_message, attributes, **kwargs):
    logger.debug(
        "Template '%s' applied to %s (%s)",
        active_message.template_name(),
        sender.__name__,
        ", ".join(attributes),
    )


@receiver(message_sent)
def on_message_sent(sender, active_message, mail_message, result, **kwargs):
    """Record the transport outcome of a send."""
    if result:
        logger.info(
            "Message '%s' sent to %s", active_message.template_name(), mail_message.to
        )
    else:
        logger.warning(
            "Message '%s' to %s was not delivered by the mailer",
            active_message.template_name(),
            mail_message.to,
        )


@receiver(message_vetoed)
def on_message_vetoed(sender, active_message, mail_message, **kwargs):
    logger.info(
        "Message '%s' to %s vetoed before sending",
        active_message.template_name(),
        mail_message.to,
    )
