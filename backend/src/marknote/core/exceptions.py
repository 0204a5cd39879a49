"""Domain errors raised by the realtime layer and its collaborators."""


class MarkNoteError(Exception):
    """Base class for application errors."""


class NotFoundError(MarkNoteError):
    """An operation referenced an unknown connection, room or note."""


class DuplicateRegistrationError(MarkNoteError):
    """A connection id was registered twice."""


class TransportError(MarkNoteError):
    """Delivery to a single recipient failed (closed socket, full buffer)."""


class AuthError(MarkNoteError):
    """A realtime handshake token could not be verified."""
