"""
GitHub App Secret Sync

Issues a GitHub App installation access token and reconciles it into
Kubernetes secrets in several shapes (opaque, basic-auth, dockerconfigjson).
"""

__version__ = "0.1.0"
