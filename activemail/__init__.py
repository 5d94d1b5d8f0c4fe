"""
Active messages for Django.

Each kind of email an application sends is described by a subclass of
:class:`activemail.message.ActiveMessage`, which carries the default
content and can be overridden by stored templates at send time.
"""
