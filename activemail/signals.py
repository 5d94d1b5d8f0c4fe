import django.dispatch

# Message lifecycle signals
template_applied = django.dispatch.Signal()  # sender=message class, active_message, attributes
before_send = django.dispatch.Signal()       # sender=message class, active_message, event
message_sent = django.dispatch.Signal()      # sender=message class, active_message, mail_message, result
message_vetoed = django.dispatch.Signal()    # sender=message class, active_message, mail_message
