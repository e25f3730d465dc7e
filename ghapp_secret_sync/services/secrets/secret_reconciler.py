"""
Secret reconciliation.

Reads the current secret for a target, decides between create and update,
and writes the full desired body. Annotations are replaced, not merged.
"""

import logging
from enum import Enum
from typing import Tuple

from ghapp_secret_sync.exception.exceptions import SecretLookupError, SecretWriteError
from ghapp_secret_sync.models.secret_models import AccessToken, SecretTarget, StoredSecret
from ghapp_secret_sync.services.secrets.secret_store import (
    Found,
    LookupFailed,
    LookupResult,
    NotFound,
    SecretStore,
    lookup,
)
from ghapp_secret_sync.services.secrets.shapes import build_secret

logger = logging.getLogger(__name__)


class SecretAction(str, Enum):
    CREATE = "created"
    UPDATE = "updated"


def decide(result: LookupResult, target: SecretTarget) -> SecretAction:
    """
    Map a lookup outcome to the write to perform.

    Raises:
        SecretLookupError: If the lookup failed for a reason other than not-found
    """
    if isinstance(result, NotFound):
        return SecretAction.CREATE
    if isinstance(result, Found):
        return SecretAction.UPDATE
    if isinstance(result, LookupFailed):
        raise SecretLookupError(
            f"error getting secret {target.namespace}/{target.name}: {result.error}"
        ) from result.error
    raise TypeError(f"unexpected lookup result: {result!r}")


class SecretReconciler:
    """Create-or-update of secret targets against a SecretStore."""

    def __init__(self, store: SecretStore):
        self.store = store

    async def apply(
        self, target: SecretTarget, access_token: AccessToken
    ) -> Tuple[SecretAction, StoredSecret]:
        """
        Reconcile ``target`` and report which write was made.

        Raises:
            SecretLookupError: If reading the existing secret fails
            SecretWriteError: If the create or update fails
        """
        result = await lookup(self.store, target.name, target.namespace)
        action = decide(result, target)
        desired = build_secret(target, access_token.token)

        try:
            if action is SecretAction.CREATE:
                stored = await self.store.create(desired)
            else:
                stored = await self.store.update(desired)
        except Exception as e:
            verb = "creating" if action is SecretAction.CREATE else "updating"
            raise SecretWriteError(
                f"error {verb} secret {target.namespace}/{target.name}: {e}"
            ) from e

        logger.info(f"Secret {target.namespace}/{target.name} {action.value} ({desired.type})")
        return action, stored

    async def reconcile(self, target: SecretTarget, access_token: AccessToken) -> StoredSecret:
        _, stored = await self.apply(target, access_token)
        return stored
