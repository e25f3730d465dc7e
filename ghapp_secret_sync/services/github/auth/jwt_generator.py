"""
GitHub App JWT Generator

Generates JSON Web Tokens (JWT) for authenticating as a GitHub App.
JWTs are used to request installation access tokens.
"""

import logging
import time
from typing import Optional

import jwt
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from ghapp_secret_sync.config.config import (
    CLOCK_SKEW_SECONDS,
    MAX_ASSERTION_LIFETIME_SECONDS,
)
from ghapp_secret_sync.exception.exceptions import KeyParseError, SigningError
from ghapp_secret_sync.models.secret_models import Identity, SignedAssertion

logger = logging.getLogger(__name__)

# GitHub rejects assertions that live longer than 10 minutes
GITHUB_MAX_LIFETIME_SECONDS = 600


def parse_private_key(key_bytes: bytes) -> rsa.RSAPrivateKey:
    """
    Parse PEM-encoded RSA private key material.

    Raises:
        KeyParseError: If the key is malformed, encrypted, or not RSA
    """
    try:
        private_key = serialization.load_pem_private_key(key_bytes, password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise KeyParseError(f"error parsing RSA private key: {e}") from e

    if not isinstance(private_key, rsa.RSAPrivateKey):
        raise KeyParseError(
            f"unsupported private key type {type(private_key).__name__}, RS256 requires an RSA key"
        )
    return private_key


class GitHubAppJWTGenerator:
    """Signs GitHub App assertions for a single identity."""

    def __init__(
        self,
        identity: Identity,
        clock_skew_seconds: int = CLOCK_SKEW_SECONDS,
        lifetime_seconds: int = MAX_ASSERTION_LIFETIME_SECONDS,
    ):
        """
        Initialize JWT generator.

        Args:
            identity: GitHub App identity holding the PEM private key
            clock_skew_seconds: How far to backdate "iat" to tolerate clock drift
            lifetime_seconds: Assertion lifetime (max 600 = 10 minutes)
        """
        if lifetime_seconds > GITHUB_MAX_LIFETIME_SECONDS:
            logger.warning(
                f"Requested lifetime {lifetime_seconds}s exceeds GitHub's 10-minute limit. "
                f"Using {GITHUB_MAX_LIFETIME_SECONDS} seconds instead."
            )
            lifetime_seconds = GITHUB_MAX_LIFETIME_SECONDS

        if lifetime_seconds < 1:
            raise ValueError("Lifetime must be at least 1 second")

        self.identity = identity
        self.clock_skew_seconds = clock_skew_seconds
        self.lifetime_seconds = lifetime_seconds

    def generate_jwt(self, now: Optional[float] = None) -> SignedAssertion:
        """
        Generate a JWT for GitHub App authentication.

        GitHub requires:
        - Algorithm: RS256
        - Issued at (iat): backdated to allow for clock drift
        - Expiration (exp): Max 10 minutes from now
        - Issuer (iss): GitHub App ID

        Args:
            now: Reference unix timestamp (defaults to current time)

        Returns:
            SignedAssertion with the encoded token

        Raises:
            KeyParseError: If the private key can't be parsed
            SigningError: If token generation fails
        """
        private_key = parse_private_key(self.identity.private_key)

        if now is None:
            now = time.time()
        issued_at = int(now) - self.clock_skew_seconds
        expires_at = int(now) + self.lifetime_seconds

        payload = {
            "iat": issued_at,
            "exp": expires_at,
            "iss": self.identity.issuer_id,
        }

        try:
            encoded = jwt.encode(payload, private_key, algorithm="RS256")
        except (jwt.PyJWTError, ValueError, TypeError) as e:
            raise SigningError(f"error signing token: {e}") from e

        logger.info(
            f"Generated GitHub App JWT (expires in {expires_at - int(now)}s, "
            f"app_id={self.identity.issuer_id})"
        )

        return SignedAssertion(
            issuer=self.identity.issuer_id,
            issued_at=issued_at,
            expires_at=expires_at,
            encoded=encoded,
        )


def sign(identity: Identity, now: Optional[float] = None) -> SignedAssertion:
    """Sign an assertion for ``identity`` with the default skew and lifetime."""
    return GitHubAppJWTGenerator(identity).generate_jwt(now)
