"""Data models for the secret sync run."""

from ghapp_secret_sync.models.secret_models import (
    AccessToken,
    Identity,
    RunReport,
    SecretShape,
    SecretTarget,
    SignedAssertion,
    StoredSecret,
)

__all__ = [
    "AccessToken",
    "Identity",
    "RunReport",
    "SecretShape",
    "SecretTarget",
    "SignedAssertion",
    "StoredSecret",
]
