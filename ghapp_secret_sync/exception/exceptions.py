"""Error taxonomy for a credential refresh run."""

from typing import Optional


class SecretSyncError(Exception):
    """Base class for all errors raised by the sync run."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigError(SecretSyncError):
    """Raised when the config file or key material is missing or invalid."""


class SignerError(SecretSyncError):
    """Raised when the GitHub App assertion cannot be produced."""


class KeyParseError(SignerError):
    """Raised when the private key is malformed or not an RSA key."""


class SigningError(SignerError):
    """Raised when signing the assertion fails."""


class ExchangeError(SecretSyncError):
    """Raised when the assertion cannot be exchanged for an access token."""


class TransportError(ExchangeError):
    """Raised on network or connection failures talking to GitHub."""


class AuthorityError(ExchangeError):
    """Raised when GitHub answers with a non-success status."""

    def __init__(self, message: str, status_code: int, body: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class ResponseShapeError(ExchangeError):
    """Raised when the access token response has no usable token field."""


class ReconcileError(SecretSyncError):
    """Base class for errors scoped to a single secret target."""


class SecretLookupError(ReconcileError):
    """Raised when reading the existing secret fails for a reason other than not-found."""


class SecretWriteError(ReconcileError):
    """Raised when creating or replacing a secret fails."""


class DeadlineExceededError(SecretSyncError):
    """Raised when the run deadline expires before work completes."""
