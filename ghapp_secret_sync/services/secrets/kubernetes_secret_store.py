"""Kubernetes-backed secret store using the CoreV1 API."""

import asyncio
import base64
import logging
import time
from typing import Dict, Optional

from kubernetes import client
from kubernetes import config as k8s_config
from kubernetes.client.rest import ApiException

from ghapp_secret_sync.exception.exceptions import ConfigError
from ghapp_secret_sync.models.secret_models import StoredSecret
from ghapp_secret_sync.services.secrets.secret_store import SecretNotFoundError, SecretStore

logger = logging.getLogger(__name__)

# Per-call timeout handed to the kubernetes client, in seconds
DEFAULT_REQUEST_TIMEOUT = 30
# Smallest timeout handed out once the run deadline is close or past
MIN_REQUEST_TIMEOUT = 0.1


def load_kubernetes_config(context: Optional[str] = None) -> None:
    """
    Load in-cluster config, falling back to the local kubeconfig.

    Raises:
        ConfigError: If neither configuration can be loaded
    """
    try:
        k8s_config.load_incluster_config()
        logger.info("Using in-cluster Kubernetes config")
        return
    except k8s_config.ConfigException:
        logger.debug("In-cluster config unavailable, trying kubeconfig")

    try:
        k8s_config.load_kube_config(context=context)
    except (k8s_config.ConfigException, OSError) as e:
        raise ConfigError(f"error loading Kubernetes config: {e}") from e
    logger.info(f"Using kubeconfig (context={context or 'current'})")


def _decode_data(data: Optional[Dict[str, str]]) -> Dict[str, str]:
    if not data:
        return {}
    return {k: base64.b64decode(v).decode("utf-8", errors="replace") for k, v in data.items()}


def _to_stored_secret(obj: client.V1Secret) -> StoredSecret:
    metadata = obj.metadata
    return StoredSecret(
        name=metadata.name,
        namespace=metadata.namespace,
        type=obj.type or "Opaque",
        data=_decode_data(obj.data),
        annotations=dict(metadata.annotations or {}),
    )


def _to_body(secret: StoredSecret) -> client.V1Secret:
    return client.V1Secret(
        api_version="v1",
        kind="Secret",
        metadata=client.V1ObjectMeta(
            name=secret.name,
            namespace=secret.namespace,
            annotations=dict(secret.annotations),
        ),
        type=secret.type,
        string_data=dict(secret.data),
    )


class KubernetesSecretStore(SecretStore):
    """SecretStore over ``CoreV1Api`` namespaced secret calls.

    The client is blocking, so calls run in worker threads. Updates are
    unconditional replaces: a change made by someone else between our read
    and write is overwritten.

    A call already running in a worker thread can't be cancelled, so once a
    deadline is set each call's timeout is capped by the time left.
    """

    def __init__(
        self,
        api: Optional[client.CoreV1Api] = None,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ):
        self.api = api or client.CoreV1Api()
        self.request_timeout = request_timeout
        self._deadline: Optional[float] = None

    @classmethod
    def from_environment(cls, context: Optional[str] = None) -> "KubernetesSecretStore":
        load_kubernetes_config(context)
        return cls(client.CoreV1Api())

    def set_deadline(self, deadline: float) -> None:
        self._deadline = deadline

    def _call_timeout(self) -> float:
        if self._deadline is None:
            return self.request_timeout
        remaining = self._deadline - time.monotonic()
        return max(min(self.request_timeout, remaining), MIN_REQUEST_TIMEOUT)

    async def get(self, name: str, namespace: str) -> StoredSecret:
        try:
            obj = await asyncio.to_thread(
                self.api.read_namespaced_secret,
                name=name,
                namespace=namespace,
                _request_timeout=self._call_timeout(),
            )
        except ApiException as e:
            if e.status == 404:
                raise SecretNotFoundError(name, namespace) from e
            raise
        return _to_stored_secret(obj)

    async def create(self, secret: StoredSecret) -> StoredSecret:
        obj = await asyncio.to_thread(
            self.api.create_namespaced_secret,
            namespace=secret.namespace,
            body=_to_body(secret),
            _request_timeout=self._call_timeout(),
        )
        return _to_stored_secret(obj)

    async def update(self, secret: StoredSecret) -> StoredSecret:
        obj = await asyncio.to_thread(
            self.api.replace_namespaced_secret,
            name=secret.name,
            namespace=secret.namespace,
            body=_to_body(secret),
            _request_timeout=self._call_timeout(),
        )
        return _to_stored_secret(obj)
