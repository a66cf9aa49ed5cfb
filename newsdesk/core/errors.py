"""
Newsdesk Errors
===============

Exception types raised by stores and services. Routes turn them into
``{success: False, message}`` envelopes using ``status_code``.
"""


class NewsdeskError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 500

    def __init__(self, message):
        super().__init__(message)
        self.message = message


class ValidationError(NewsdeskError):
    """Malformed input."""

    status_code = 400


class NotFound(NewsdeskError):
    """Lookup by id, key or slug found nothing."""

    status_code = 404


class DuplicateSubscription(NewsdeskError):
    """An active subscriber tried to subscribe again."""

    status_code = 400

    def __init__(self, email):
        super().__init__('Email already subscribed')
        self.email = email


class InvalidToken(NewsdeskError):
    """Verification or unsubscribe token does not match any subscriber."""

    status_code = 404

    def __init__(self, kind):
        super().__init__(f'Invalid {kind} token')
        self.kind = kind


class TransportError(NewsdeskError):
    """The mail provider refused or failed to send a message."""

    def __init__(self, recipient, reason):
        super().__init__(f'Failed to send email to {recipient}: {reason}')
        self.recipient = recipient
        self.reason = reason


class StoreError(NewsdeskError):
    """The database could not complete an operation."""
