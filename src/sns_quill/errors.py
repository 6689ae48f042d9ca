"""Error types."""

from __future__ import annotations


class SnsQuillError(RuntimeError):
    """Base error."""


class InputValidationError(SnsQuillError, ValueError):
    """Command-line input is malformed or contradictory."""


class ConfigError(SnsQuillError, ValueError):
    """A config, credential or canister ids file is missing or malformed."""


class EncodingError(SnsQuillError):
    """A value could not be encoded as candid."""


class DecodingError(SnsQuillError):
    """Candid or CBOR bytes could not be decoded."""


class UnsupportedResponseError(DecodingError):
    """No response shape is known for the method."""


class SigningError(SnsQuillError):
    """A message could not be signed."""


class IdentityError(SigningError):
    """Key material could not be turned into an identity."""


class TransportError(SnsQuillError):
    """The replica could not be reached or refused the request."""


class ReplicaRequestError(TransportError):
    """Replica returned an HTTP error response."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        body: object | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class ReplicaRejectError(TransportError):
    """The canister call was rejected."""

    def __init__(self, message: str, *, reject_code: int | None = None) -> None:
        super().__init__(message)
        self.reject_code = reject_code


class StatusTimeoutError(TransportError):
    """Timed out waiting for a request status."""
