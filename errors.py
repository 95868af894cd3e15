# errors.py
"""Per-message outcomes. None of these are fatal to the process."""


class MessageError(Exception):
    """Base class for anything that stops one inbound message."""


class NotRecognized(MessageError):
    """The message is not addressed to this system (no sentinel, unknown table)."""


class MalformedCommand(MessageError, ValueError):
    """The command could not be tokenized, resolved or coerced."""


class AuthFailure(MessageError):
    """Password missing or not valid for the sender's phone number."""
