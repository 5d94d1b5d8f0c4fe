"""
Pre-send hooks for active messages.

A hook is a callable receiving the composed mail message and returning a
boolean. Hooks run in priority order and the first one returning False
vetoes the send; the remaining hooks are not called.

Usage::

    from activemail.hooks import BEFORE_SEND, add_hook, on_hook

    add_hook(BEFORE_SEND, my_callback, priority=10)

    @on_hook(BEFORE_SEND, priority=5)
    def skip_internal_domains(mail_message):
        return not any(to.endswith("@internal.example") for to in mail_message.to)
"""

import functools
import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger("activemail.hooks")

BEFORE_SEND = "before_send"


@dataclass
class ActiveMessageEvent:
    """
    Carries the outgoing mail message through the ``before_send`` signal.

    Receivers may set ``proceed`` to False to cancel sending.
    """

    mail_message: Any
    active_message: Any = None
    proceed: bool = True


class HookManager:
    """
    Registry of veto hooks with priority-based execution.

    Lower priority numbers execute first (default is 10).
    """

    def __init__(self):
        # {tag: {priority: [callable, ...]}}
        self._hooks = defaultdict(lambda: defaultdict(list))

    def add_hook(self, tag, callback, priority=10):
        """
        Register a callback for a hook.

        Args:
            tag: The hook name (e.g. 'before_send').
            callback: A callable returning False to veto.
            priority: Execution order, lower runs first. Default 10.
        """
        if not callable(callback):
            raise TypeError(f"Callback for hook '{tag}' must be callable.")
        self._hooks[tag][priority].append(callback)

    def get_hooks(self, tag):
        """Return the callbacks registered for *tag* in execution order."""
        if tag not in self._hooks:
            return []
        return [
            callback
            for priority in sorted(self._hooks[tag].keys())
            for callback in self._hooks[tag][priority]
        ]

    def run_hooks(self, tag, *args, **kwargs):
        """
        Call every callback for *tag* in priority order.

        Returns False as soon as a callback returns False, True otherwise.
        Exceptions raised by callbacks propagate to the caller.
        """
        return run_chain(self.get_hooks(tag), *args, **kwargs)

    def has_hook(self, tag):
        """Return True if any callbacks are registered for *tag*."""
        if tag not in self._hooks:
            return False
        return any(
            len(callbacks) > 0
            for callbacks in self._hooks[tag].values()
        )

    def remove_hook(self, tag, callback=None):
        """
        Remove hook callbacks.

        If *callback* is None, all callbacks for *tag* are removed.
        Otherwise only the matching callback is removed (from every priority).
        """
        if callback is None:
            self._hooks.pop(tag, None)
            return

        if tag not in self._hooks:
            return

        for priority in list(self._hooks[tag].keys()):
            self._hooks[tag][priority] = [
                cb for cb in self._hooks[tag][priority] if cb is not callback
            ]
            if not self._hooks[tag][priority]:
                del self._hooks[tag][priority]

        if not self._hooks[tag]:
            del self._hooks[tag]

    def clear(self):
        """Remove all registered hooks. Useful for testing."""
        self._hooks.clear()


def run_chain(callbacks, *args, **kwargs):
    """Run *callbacks* in order, stopping at the first one returning False."""
    for callback in callbacks:
        if callback(*args, **kwargs) is False:
            logger.debug("Hook %r vetoed the send", callback)
            return False
    return True


# ---------------------------------------------------------------------------
# Module-level singleton and convenience functions
# ---------------------------------------------------------------------------

hooks = HookManager()


def add_hook(tag, callback, priority=10):
    """Register a hook callback on the global hook manager."""
    hooks.add_hook(tag, callback, priority)


def run_hooks(tag, *args, **kwargs):
    """Run hooks on the global hook manager."""
    return hooks.run_hooks(tag, *args, **kwargs)


def has_hook(tag):
    """Check if a hook has callbacks on the global hook manager."""
    return hooks.has_hook(tag)


def remove_hook(tag, callback=None):
    """Remove a hook callback from the global hook manager."""
    hooks.remove_hook(tag, callback)


def on_hook(tag, priority=10):
    """
    Decorator to register a function as a hook callback::

        @on_hook('before_send')
        def handle(mail_message):
            return True
    """
    def decorator(func):
        add_hook(tag, func, priority)

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            return func(*args, **kwargs)
        return wrapper
    return decorator
