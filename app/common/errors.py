# app/common/errors.py


class ProtocolError(Exception):
    """Base class for errors that end a single connection."""


class FramingError(ProtocolError):
    """Bad length prefix, short read, or transport failure mid-frame."""


class EncodingError(ProtocolError):
    """Message cannot be represented as a frame."""


class DecodingError(ProtocolError):
    """Frame payload is not valid JSON or not a valid message."""


class ProtocolViolation(ProtocolError):
    """Message type is illegal at this point of the handshake."""


class AuthFailure(Exception):
    """Login was rejected by the server."""


class StoreLookupFailure(Exception):
    """Secret store has no usable secret for the requested username."""
