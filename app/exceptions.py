"""Exceptions raised while consulting the model and running searches."""
from __future__ import annotations


class GatewayError(RuntimeError):
    """Base exception; carries the HTTP status the failure maps onto."""

    status_code = 500


class ClientError(GatewayError):
    """The request itself is at fault."""

    status_code = 400


class InvalidRequestError(ClientError):
    """Raised when a required field is missing or has the wrong type."""
    pass


class UnsupportedBackendError(ClientError):
    """Raised when the requested search backend is not recognised."""
    pass


class ModeDisallowedError(ClientError):
    """Raised when a backend or endpoint is disabled in restricted mode."""
    pass


class MissingCredentialError(ClientError):
    """Raised when a backend needs an API key the request did not supply."""
    pass


class MalformedCredentialError(ClientError):
    """Raised when the supplied API key is not a string."""
    pass


class ServerError(GatewayError):
    """The server or one of its collaborators failed."""

    status_code = 500


class RequestDecodeError(ServerError):
    """Raised when the request body cannot be decoded as JSON."""
    pass


class ConsultationError(ServerError):
    """Raised when the chat completion service fails outright."""
    pass


class ConsultationRetriesExhausted(ConsultationError):
    """Raised when every classification attempt produced a malformed tool call."""
    pass


class SearchTransportError(ServerError):
    """Raised when a search provider cannot be reached or answers badly."""
    pass


class TransientClassificationError(Exception):
    """A tool call that did not follow the declared contract; retried internally."""
    pass


class SummarizationError(ServerError):
    """Raised when search results could not be condensed into a summary."""
    pass
