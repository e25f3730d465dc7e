"""
Command-line entry point.

Usage:
    ghapp-secret-sync -c /etc/gh_get_token.conf

Exit codes:
    0  every target reconciled
    1  fatal error before any target was attempted (config, signing, exchange)
    2  at least one target failed
"""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from ghapp_secret_sync.config import config
from ghapp_secret_sync.config.loader import load_run_inputs
from ghapp_secret_sync.exception.exceptions import ConfigError, SecretSyncError
from ghapp_secret_sync.models.secret_models import RunReport
from ghapp_secret_sync.services.reconciliation.driver import ReconciliationDriver
from ghapp_secret_sync.services.secrets.kubernetes_secret_store import KubernetesSecretStore

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_PARTIAL_FAILURE = 2


def _positive(cast):
    """argparse type accepting only numbers greater than zero."""

    def convert(value: str):
        try:
            return config.parse_positive("value", value, cast)
        except ConfigError as e:
            raise argparse.ArgumentTypeError(e.message) from e

    convert.__name__ = cast.__name__
    return convert


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ghapp-secret-sync",
        description="Issue a GitHub App installation token and sync it into Kubernetes secrets.",
        exit_on_error=False,
    )
    parser.add_argument(
        "-c",
        "--config",
        default=config.GH_TOKEN_SYNC_CONFIG,
        help=f"Config file path (default: {config.GH_TOKEN_SYNC_CONFIG})",
    )
    parser.add_argument(
        "--deadline",
        type=_positive(float),
        default=None,
        help="Overall run deadline in seconds (default: GH_TOKEN_SYNC_DEADLINE_SECONDS or 300)",
    )
    parser.add_argument(
        "--max-workers",
        type=_positive(int),
        default=None,
        help="Number of secrets reconciled concurrently (default: GH_TOKEN_SYNC_MAX_WORKERS or 4)",
    )
    parser.add_argument(
        "--kube-context",
        default=config.KUBECONFIG_CONTEXT,
        help="kubeconfig context to use when not running in a cluster",
    )
    parser.add_argument("--log-level", default=config.LOG_LEVEL, help="Log level")
    return parser


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def format_summary(report: RunReport) -> str:
    """Render a per-target summary of a run."""
    lines = [f"Secrets: {len(report.succeeded)} succeeded, {len(report.failed)} failed"]
    for target in report.succeeded:
        lines.append(f"  {target}: ok ({report.actions.get(target.key, 'done')})")
    for target, error in report.failed:
        lines.append(f"  {target}: FAILED: {type(error).__name__}: {error}")
    return "\n".join(lines)


async def run_sync(args: argparse.Namespace) -> int:
    try:
        deadline = args.deadline if args.deadline is not None else config.get_deadline_seconds()
        max_workers = args.max_workers if args.max_workers is not None else config.get_max_workers()
        inputs = load_run_inputs(args.config)
        store = KubernetesSecretStore.from_environment(args.kube_context)
        driver = ReconciliationDriver(store, deadline_seconds=deadline, max_workers=max_workers)
        report = await driver.run(inputs.identity, inputs.targets)
    except SecretSyncError as e:
        logger.error(f"Fatal: {type(e).__name__}: {e}")
        print(f"FATAL: no secrets were reconciled: {type(e).__name__}: {e}")
        return EXIT_FATAL

    print(format_summary(report))
    return EXIT_OK if report.ok else EXIT_PARTIAL_FAILURE


def main(argv: Optional[List[str]] = None) -> int:
    try:
        args = build_parser().parse_args(argv)
    except argparse.ArgumentError as e:
        print(f"FATAL: no secrets were reconciled: ConfigError: {e}")
        return EXIT_FATAL
    configure_logging(args.log_level)
    return asyncio.run(run_sync(args))


if __name__ == "__main__":
    sys.exit(main())
