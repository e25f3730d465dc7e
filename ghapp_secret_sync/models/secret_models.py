"""
Domain models for one credential refresh run.

Identity and targets are loaded once from config; assertion and access token
are created during the run and never persisted.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple


class SecretShape(str, Enum):
    """Encoding family of a materialized credential."""

    OPAQUE = "opaque"
    BASIC_AUTH = "basic-auth"
    DOCKERCONFIGJSON = "dockerconfigjson"


@dataclass(frozen=True)
class Identity:
    """GitHub App identity used to sign assertions."""

    issuer_id: str
    installation_id: str
    private_key: bytes = field(repr=False)


@dataclass(frozen=True)
class SignedAssertion:
    """A signed, short-lived GitHub App JWT."""

    issuer: str
    issued_at: int
    expires_at: int
    encoded: str = field(repr=False)


@dataclass(frozen=True)
class AccessToken:
    """Installation access token returned by GitHub."""

    token: str = field(repr=False)
    expires_at: Optional[str] = None
    permissions: Dict[str, str] = field(default_factory=dict)


@dataclass
class SecretTarget:
    """Declarative description of one secret to materialize."""

    name: str
    namespace: str
    shape: SecretShape
    annotations: Dict[str, str] = field(default_factory=dict)
    registry_host: str = "ghcr.io"

    @property
    def key(self) -> Tuple[str, str]:
        return (self.namespace, self.name)

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name} [{self.shape.value}]"


@dataclass
class StoredSecret:
    """The secret store's view of a secret."""

    name: str
    namespace: str
    type: str
    data: Dict[str, str] = field(default_factory=dict)
    annotations: Dict[str, str] = field(default_factory=dict)


@dataclass
class RunReport:
    """Outcome of reconciling all targets of a run."""

    succeeded: List[SecretTarget] = field(default_factory=list)
    failed: List[Tuple[SecretTarget, Exception]] = field(default_factory=list)
    actions: Dict[Tuple[str, str], str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed
