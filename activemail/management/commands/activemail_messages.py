from django.core.management.base import BaseCommand
from django.utils.translation import gettext as _

from activemail.message import ActiveMessage
from activemail.storage import get_template_storage


class Command(BaseCommand):
    help = "List registered active messages and whether a stored template overrides them."

    def add_arguments(self, parser):
        parser.add_argument(
            "--hints",
            action="store_true",
            help=_("Also show the template data hints of each message"),
        )

    def handle(self, *args, **options):
        messages = ActiveMessage.registered_messages()
        if not messages:
            self.stdout.write(_("No active messages registered."))
            return

        storage = get_template_storage()

        for name in sorted(messages):
            message = messages[name]()
            template = storage.get_template(message.template_name())
            status = (
                self.style.SUCCESS(_("template: %(count)d attribute(s)") % {"count": len(template)})
                if template
                else _("defaults")
            )
            self.stdout.write(f"{message.template_name()} [{message.view_name()}] {status}")

            if options["hints"]:
                for attribute, hint in message.template_data_hints().items():
                    self.stdout.write(f"  {{{attribute}}}: {hint}")
