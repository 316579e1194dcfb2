"""
Errors the gateway surfaces to its callers.

Each one carries the HTTP status it maps to; the app renders them as
``{"error": message}``. Nothing here is retried.
"""


class GatewayError(Exception):
    """Base class for errors that end a request with a status code."""

    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict:
        return {"error": self.message}


class ClientInputError(GatewayError):
    """The caller sent something we refuse to route."""

    status_code = 400


class MalformedPayload(ClientInputError):
    """Request body is not a chat completion payload. The parse error is chained as __cause__."""


class LocalIOError(GatewayError):
    """Reading the inbound body or encoding our own response failed."""

    status_code = 500


class UpstreamUnavailable(GatewayError):
    """Connect, timeout or transport failure talking to a model endpoint."""

    status_code = 502

    def __init__(self, message: str, tier: str):
        self.tier = tier
        super().__init__(message)
