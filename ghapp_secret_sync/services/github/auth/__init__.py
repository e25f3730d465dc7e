"""
GitHub App Authentication Module

Handles GitHub App authentication including:
- JWT assertion signing for the GitHub App
- Installation access token exchange
"""

from ghapp_secret_sync.services.github.auth.jwt_generator import GitHubAppJWTGenerator, sign
from ghapp_secret_sync.services.github.auth.installation_token_manager import InstallationTokenManager

__all__ = [
    "GitHubAppJWTGenerator",
    "InstallationTokenManager",
    "sign",
]
