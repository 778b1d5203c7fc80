class EnvelopeError(Exception):
    """Base class for everything the envelope builder raises."""


class CallerMisuseError(EnvelopeError, ValueError):
    """Unsupported status code or wrongly typed message/data."""


class SerializationFailure(EnvelopeError, TypeError):
    """The data payload cannot be represented as JSON."""


class TransportFailure(EnvelopeError, RuntimeError):
    """The response object could not be written."""
