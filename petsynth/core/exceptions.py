# petsynth/core/exceptions.py
"""Domain errors raised by services and translated to JSON responses by the routes."""


class NotFoundError(Exception):
    """The requested entity is absent or not visible."""


class ConflictError(Exception):
    """A unique key (e.g. username) is already taken."""


class AuthenticationError(Exception):
    """Credentials were missing or wrong. The message never says which check failed."""


class GenerationError(Exception):
    """The text provider could not produce a parseable draft after all attempts."""


class DraftValidationError(Exception):
    """A provider returned a draft that parsed but violates the draft constraints."""

    def __init__(self, message: str, details: dict):
        super().__init__(message)
        self.details = details
