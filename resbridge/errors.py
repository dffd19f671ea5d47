from __future__ import annotations


class BridgeError(RuntimeError):
    """Base class for failures the bridge reports back to its caller."""


class ValidationError(BridgeError, ValueError):
    """Request carried no usable value (HTTP 400)."""


class LinkUnavailable(BridgeError):
    """Serial link is not open (HTTP 503)."""


class WriteFailure(BridgeError):
    """Write to an open link failed (HTTP 500)."""


class ConnectFailure(BridgeError):
    """Opening the serial device failed; the link retries on its own."""


class EnumerationFailure(BridgeError):
    """Listing serial ports failed (HTTP 500)."""
