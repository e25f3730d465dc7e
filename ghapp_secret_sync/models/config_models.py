"""
Config file models.

Validates the TOML config consumed by the loader. Field names follow the
keys used in the config file. Unknown keys are rejected so typos
surface as errors.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ghapp_secret_sync.models.secret_models import SecretShape


class GitHubAppConfig(BaseModel):
    """The [github_app] table."""

    model_config = ConfigDict(extra="forbid")

    app_id: str = Field(..., min_length=1, description="GitHub App ID (JWT issuer)")
    install_id: str = Field(..., min_length=1, description="GitHub App installation ID")
    app_pem_path: Optional[str] = Field(
        default=None, description="Path to the App private key .pem file"
    )

    @field_validator("app_id", "install_id", mode="before")
    @classmethod
    def _coerce_id(cls, value):
        # TOML allows ids to be written as integers
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value


class TargetConfig(BaseModel):
    """One entry of the [[targets]] array."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1)
    namespace: str = Field(..., min_length=1)
    shape: SecretShape
    annotations: Dict[str, str] = Field(default_factory=dict)
    registry_host: str = Field(default="ghcr.io", min_length=1)


class LegacySecretConfig(BaseModel):
    """The [k8s_secret] table, expanded into three targets."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1)
    namespace: str = Field(..., min_length=1)
    dockerconf_anno: Dict[str, str] = Field(default_factory=dict)
    basicauth_anno: Dict[str, str] = Field(default_factory=dict)


class SyncConfig(BaseModel):
    """Top-level config file."""

    model_config = ConfigDict(extra="forbid")

    github_app: GitHubAppConfig
    targets: List[TargetConfig] = Field(default_factory=list)
    k8s_secret: Optional[LegacySecretConfig] = None
