"""
Secret store interface.

The store is addressed by (name, namespace) and supports get, create and
update. ``lookup`` turns a get into an explicit three-outcome result so the
create/update decision can be made without touching the store.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Union

from ghapp_secret_sync.models.secret_models import StoredSecret


class SecretNotFoundError(Exception):
    """Raised by a store when no secret exists for the requested key."""

    def __init__(self, name: str, namespace: str):
        super().__init__(f"secret {namespace}/{name} not found")
        self.name = name
        self.namespace = namespace


class SecretStore(ABC):
    """Key-value CRUD API over secrets."""

    @abstractmethod
    async def get(self, name: str, namespace: str) -> StoredSecret:
        """Return the secret, or raise SecretNotFoundError if it doesn't exist."""

    @abstractmethod
    async def create(self, secret: StoredSecret) -> StoredSecret:
        """Insert ``secret`` as a new record."""

    @abstractmethod
    async def update(self, secret: StoredSecret) -> StoredSecret:
        """Overwrite the existing record with ``secret``."""

    def set_deadline(self, deadline: float) -> None:
        """Bound later calls by a ``time.monotonic()`` deadline. No-op by default."""


@dataclass(frozen=True)
class NotFound:
    pass


@dataclass(frozen=True)
class Found:
    secret: StoredSecret


@dataclass(frozen=True)
class LookupFailed:
    error: Exception


LookupResult = Union[NotFound, Found, LookupFailed]


async def lookup(store: SecretStore, name: str, namespace: str) -> LookupResult:
    """Read ``namespace/name`` from ``store`` and classify the outcome."""
    try:
        secret = await store.get(name, namespace)
    except SecretNotFoundError:
        return NotFound()
    except Exception as e:
        return LookupFailed(e)
    return Found(secret)
