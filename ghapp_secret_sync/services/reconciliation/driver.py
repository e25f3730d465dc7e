"""
Reconciliation driver.

Runs one credential refresh: sign an assertion, exchange it for an access
token, then reconcile every target with that token. Signing and exchange
failures abort the run; target failures are collected in the report.
"""

import asyncio
import logging
import time
from typing import Callable, List, Optional, Sequence, Tuple

from ghapp_secret_sync.config.config import get_deadline_seconds, get_max_workers
from ghapp_secret_sync.exception.exceptions import ConfigError, DeadlineExceededError
from ghapp_secret_sync.models.secret_models import (
    AccessToken,
    Identity,
    RunReport,
    SecretTarget,
    StoredSecret,
)
from ghapp_secret_sync.services.github.auth.installation_token_manager import InstallationTokenManager
from ghapp_secret_sync.services.github.auth.jwt_generator import sign
from ghapp_secret_sync.services.secrets.secret_reconciler import SecretAction, SecretReconciler
from ghapp_secret_sync.services.secrets.secret_store import SecretStore

logger = logging.getLogger(__name__)


class ReconciliationDriver:
    """Orchestrates a single sign -> exchange -> reconcile-all run."""

    def __init__(
        self,
        store: SecretStore,
        token_manager: Optional[InstallationTokenManager] = None,
        deadline_seconds: Optional[float] = None,
        max_workers: Optional[int] = None,
        clock: Callable[[], float] = time.time,
    ):
        """
        Args:
            store: Secret store the targets are written to
            token_manager: Exchanger for installation tokens (creates new if not provided)
            deadline_seconds: Budget for exchange plus all reconciliations
                (defaults to GH_TOKEN_SYNC_DEADLINE_SECONDS)
            max_workers: Maximum number of targets reconciled concurrently
                (defaults to GH_TOKEN_SYNC_MAX_WORKERS)
            clock: Source of the reference time used for signing

        Raises:
            ConfigError: If the deadline or worker count is not positive
        """
        if deadline_seconds is None:
            deadline_seconds = get_deadline_seconds()
        if max_workers is None:
            max_workers = get_max_workers()
        if deadline_seconds <= 0:
            raise ConfigError(f"deadline must be greater than zero, got {deadline_seconds}")
        if max_workers < 1:
            raise ConfigError(f"max_workers must be at least 1, got {max_workers}")
        self.store = store
        self.reconciler = SecretReconciler(store)
        self.token_manager = token_manager or InstallationTokenManager()
        self.deadline_seconds = deadline_seconds
        self.max_workers = max_workers
        self._clock = clock

    async def run(self, identity: Identity, targets: Sequence[SecretTarget]) -> RunReport:
        """
        Refresh the access token and reconcile all targets.

        Raises:
            SignerError: If the assertion can't be signed
            ExchangeError: If the token exchange fails
            DeadlineExceededError: If the deadline passes before a token is obtained
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.deadline_seconds
        self.store.set_deadline(time.monotonic() + self.deadline_seconds)

        assertion = sign(identity, self._clock())

        try:
            access_token = await asyncio.wait_for(
                self.token_manager.exchange(identity.installation_id, assertion),
                timeout=max(deadline - loop.time(), 0),
            )
        except asyncio.TimeoutError as e:
            raise DeadlineExceededError(
                f"run deadline of {self.deadline_seconds}s exceeded while requesting access token"
            ) from e

        return await self._reconcile_all(list(targets), access_token, deadline)

    async def _reconcile_all(
        self,
        targets: List[SecretTarget],
        access_token: AccessToken,
        deadline: float,
    ) -> RunReport:
        report = RunReport()
        if not targets:
            return report

        loop = asyncio.get_running_loop()
        semaphore = asyncio.Semaphore(self.max_workers)

        async def _reconcile_one(target: SecretTarget) -> Tuple[SecretAction, StoredSecret]:
            async with semaphore:
                return await self.reconciler.apply(target, access_token)

        tasks = [asyncio.create_task(_reconcile_one(target)) for target in targets]
        _, pending = await asyncio.wait(tasks, timeout=max(deadline - loop.time(), 0))

        if pending:
            logger.warning(
                f"Run deadline exceeded, cancelling {len(pending)} unfinished reconciliation(s)"
            )
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)

        for target, task in zip(targets, tasks):
            if task in pending:
                error: Optional[Exception] = DeadlineExceededError(
                    f"run deadline of {self.deadline_seconds}s exceeded before "
                    f"{target.namespace}/{target.name} was reconciled"
                )
            else:
                error = task.exception()

            if error is not None:
                logger.warning(f"Failed to reconcile {target}: {error}")
                report.failed.append((target, error))
                continue

            action, _ = task.result()
            report.succeeded.append(target)
            report.actions[target.key] = action.value

        logger.info(
            f"Reconciliation finished: {len(report.succeeded)} succeeded, {len(report.failed)} failed"
        )
        return report
