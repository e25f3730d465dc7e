"""
GitHub App Installation Access Token Exchange

Exchanges a signed GitHub App assertion for an installation access token.
One request per exchange; retries are left to the caller.
"""

import logging
from typing import Any, Optional

import httpx

from ghapp_secret_sync.config.config import (
    GITHUB_API_URL,
    GITHUB_API_VERSION,
    get_http_timeout,
)
from ghapp_secret_sync.exception.exceptions import (
    AuthorityError,
    ResponseShapeError,
    TransportError,
)
from ghapp_secret_sync.models.secret_models import AccessToken, SignedAssertion

logger = logging.getLogger(__name__)

# Limit how much of an error body ends up in messages
_ERROR_BODY_LIMIT = 500


class InstallationTokenManager:
    """Requests installation access tokens from the GitHub API."""

    def __init__(
        self,
        base_url: str = GITHUB_API_URL,
        api_version: str = GITHUB_API_VERSION,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize installation token manager.

        Args:
            base_url: GitHub API base URL
            api_version: Value for the X-GitHub-Api-Version header
            timeout: Request timeout in seconds (defaults to GH_TOKEN_SYNC_HTTP_TIMEOUT)
            client: Optional pre-built HTTP client (not closed by this class)
        """
        self.base_url = base_url.rstrip("/")
        self.api_version = api_version
        self.timeout = timeout if timeout is not None else get_http_timeout()
        self._client = client

    def _build_headers(self, assertion: SignedAssertion) -> dict:
        return {
            "Authorization": f"Bearer {assertion.encoded}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": self.api_version,
        }

    async def _post(self, url: str, headers: dict) -> httpx.Response:
        if self._client is not None:
            return await self._client.post(url, headers=headers)

        timeout_config = httpx.Timeout(self.timeout, connect=min(self.timeout, 10.0))
        async with httpx.AsyncClient(timeout=timeout_config) as client:
            return await client.post(url, headers=headers)

    async def exchange(
        self, installation_id: str, assertion: SignedAssertion
    ) -> AccessToken:
        """
        Exchange an assertion for an installation access token.

        Args:
            installation_id: GitHub App installation ID
            assertion: Signed GitHub App JWT

        Returns:
            AccessToken

        Raises:
            TransportError: On network errors and timeouts
            AuthorityError: If GitHub returns a non-success status
            ResponseShapeError: If the response has no string "token" field
        """
        url = f"{self.base_url}/app/installations/{installation_id}/access_tokens"
        logger.info(f"Requesting installation token for installation {installation_id}")

        try:
            response = await self._post(url, self._build_headers(assertion))
        except httpx.RequestError as e:
            raise TransportError(
                f"network error requesting installation token: {e}"
            ) from e

        if response.status_code not in (200, 201):
            body = response.text[:_ERROR_BODY_LIMIT]
            raise AuthorityError(
                f"failed to get installation token (status {response.status_code}): {body}",
                status_code=response.status_code,
                body=body,
            )

        token = self._parse_token(response)
        logger.info(
            f"Obtained installation token for installation {installation_id} "
            f"(expires at {token.expires_at}, permissions: {list(token.permissions.keys())})"
        )
        return token

    @staticmethod
    def _parse_token(response: httpx.Response) -> AccessToken:
        try:
            response_data: Any = response.json()
        except ValueError as e:
            raise ResponseShapeError(f"error decoding response: {e}") from e

        if not isinstance(response_data, dict):
            raise ResponseShapeError("response is not a JSON object")

        token = response_data.get("token")
        if not isinstance(token, str) or not token:
            raise ResponseShapeError("token is not a string")

        expires_at = response_data.get("expires_at")
        permissions = response_data.get("permissions")
        return AccessToken(
            token=token,
            expires_at=expires_at if isinstance(expires_at, str) else None,
            permissions=permissions if isinstance(permissions, dict) else {},
        )
