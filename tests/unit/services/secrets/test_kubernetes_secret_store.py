"""Tests for KubernetesSecretStore."""

import base64
import time
from unittest.mock import MagicMock, patch

import pytest
from kubernetes import client
from kubernetes.client.rest import ApiException

from ghapp_secret_sync.exception.exceptions import ConfigError
from ghapp_secret_sync.models.secret_models import StoredSecret
from ghapp_secret_sync.services.secrets.kubernetes_secret_store import (
    MIN_REQUEST_TIMEOUT,
    KubernetesSecretStore,
    load_kubernetes_config,
)
from ghapp_secret_sync.services.secrets.secret_reconciler import SecretReconciler
from ghapp_secret_sync.services.secrets.secret_store import SecretNotFoundError
from tests.fixtures.secret_fixtures import create_test_target, create_test_token


def _v1_secret(name="gh-token", namespace="ci", data=None, annotations=None, secret_type="Opaque"):
    encoded = {k: base64.b64encode(v.encode()).decode() for k, v in (data or {}).items()}
    return client.V1Secret(
        metadata=client.V1ObjectMeta(name=name, namespace=namespace, annotations=annotations),
        data=encoded,
        type=secret_type,
    )


class TestKubernetesSecretStore:
    """Test CoreV1Api calls and translation."""

    @pytest.mark.asyncio
    async def test_get_decodes_secret(self):
        api = MagicMock()
        api.read_namespaced_secret.return_value = _v1_secret(
            data={"token": "abc123"}, annotations={"a": "b"}
        )
        store = KubernetesSecretStore(api=api, request_timeout=5)

        secret = await store.get("gh-token", "ci")

        assert secret == StoredSecret(
            name="gh-token",
            namespace="ci",
            type="Opaque",
            data={"token": "abc123"},
            annotations={"a": "b"},
        )
        api.read_namespaced_secret.assert_called_once_with(
            name="gh-token", namespace="ci", _request_timeout=5
        )

    @pytest.mark.asyncio
    async def test_get_404_raises_not_found(self):
        api = MagicMock()
        api.read_namespaced_secret.side_effect = ApiException(status=404, reason="Not Found")
        store = KubernetesSecretStore(api=api)

        with pytest.raises(SecretNotFoundError):
            await store.get("gh-token", "ci")

    @pytest.mark.asyncio
    async def test_get_other_api_error_propagates(self):
        api = MagicMock()
        api.read_namespaced_secret.side_effect = ApiException(status=403, reason="Forbidden")
        store = KubernetesSecretStore(api=api)

        with pytest.raises(ApiException) as exc_info:
            await store.get("gh-token", "ci")
        assert exc_info.value.status == 403

    @pytest.mark.asyncio
    async def test_create_sends_string_data(self):
        api = MagicMock()
        api.create_namespaced_secret.return_value = _v1_secret(
            name="gh-token",
            data={"username": "token", "password": "abc"},
            secret_type="kubernetes.io/basic-auth",
        )
        store = KubernetesSecretStore(api=api)
        desired = StoredSecret(
            name="gh-token",
            namespace="ci",
            type="kubernetes.io/basic-auth",
            data={"username": "token", "password": "abc"},
            annotations={"owner": "ci"},
        )

        stored = await store.create(desired)

        kwargs = api.create_namespaced_secret.call_args.kwargs
        assert kwargs["namespace"] == "ci"
        body = kwargs["body"]
        assert body.type == "kubernetes.io/basic-auth"
        assert body.string_data == {"username": "token", "password": "abc"}
        assert body.metadata.name == "gh-token"
        assert body.metadata.annotations == {"owner": "ci"}
        assert stored.data == {"username": "token", "password": "abc"}
        api.replace_namespaced_secret.assert_not_called()

    @pytest.mark.asyncio
    async def test_update_replaces_secret(self):
        api = MagicMock()
        api.replace_namespaced_secret.return_value = _v1_secret(data={"token": "new"})
        store = KubernetesSecretStore(api=api)
        desired = StoredSecret(name="gh-token", namespace="ci", type="Opaque", data={"token": "new"})

        await store.update(desired)

        kwargs = api.replace_namespaced_secret.call_args.kwargs
        assert kwargs["name"] == "gh-token"
        assert kwargs["namespace"] == "ci"
        assert kwargs["body"].string_data == {"token": "new"}
        assert kwargs["body"].metadata.annotations == {}
        api.create_namespaced_secret.assert_not_called()

    @pytest.mark.asyncio
    async def test_write_error_propagates(self):
        api = MagicMock()
        api.create_namespaced_secret.side_effect = ApiException(status=409, reason="Conflict")
        store = KubernetesSecretStore(api=api)

        with pytest.raises(ApiException):
            await store.create(StoredSecret(name="gh-token", namespace="ci", type="Opaque"))


class TestLoadKubernetesConfig:
    """Test in-cluster / kubeconfig fallback."""

    def test_in_cluster_preferred(self):
        with patch("ghapp_secret_sync.services.secrets.kubernetes_secret_store.k8s_config") as k8s_config:
            k8s_config.ConfigException = Exception
            load_kubernetes_config()
            k8s_config.load_incluster_config.assert_called_once()
            k8s_config.load_kube_config.assert_not_called()

    def test_falls_back_to_kubeconfig(self):
        from kubernetes.config import ConfigException

        with patch("ghapp_secret_sync.services.secrets.kubernetes_secret_store.k8s_config") as k8s_config:
            k8s_config.ConfigException = ConfigException
            k8s_config.load_incluster_config.side_effect = ConfigException("not in cluster")
            load_kubernetes_config("dev")
            k8s_config.load_kube_config.assert_called_once_with(context="dev")

    def test_no_config_raises_config_error(self):
        from kubernetes.config import ConfigException

        with patch("ghapp_secret_sync.services.secrets.kubernetes_secret_store.k8s_config") as k8s_config:
            k8s_config.ConfigException = ConfigException
            k8s_config.load_incluster_config.side_effect = ConfigException("not in cluster")
            k8s_config.load_kube_config.side_effect = ConfigException("no kubeconfig")
            with pytest.raises(ConfigError):
                load_kubernetes_config()


class TestExistingSecretContents:
    """Test reading secrets whose data isn't valid UTF-8."""

    @pytest.mark.asyncio
    async def test_binary_data_still_reads(self):
        api = MagicMock()
        api.read_namespaced_secret.return_value = client.V1Secret(
            metadata=client.V1ObjectMeta(name="gh-token", namespace="ci"),
            data={"token": base64.b64encode(b"\xff\xfe").decode()},
            type="Opaque",
        )
        store = KubernetesSecretStore(api=api)

        secret = await store.get("gh-token", "ci")

        assert secret.name == "gh-token"
        assert secret.data["token"] == "\ufffd\ufffd"

    @pytest.mark.asyncio
    async def test_binary_data_secret_is_updated(self):
        api = MagicMock()
        api.read_namespaced_secret.return_value = client.V1Secret(
            metadata=client.V1ObjectMeta(name="gh-token", namespace="ci"),
            data={"token": base64.b64encode(b"\xff\xfe").decode()},
            type="Opaque",
        )
        api.replace_namespaced_secret.return_value = _v1_secret(data={"token": "abc123"})
        reconciler = SecretReconciler(KubernetesSecretStore(api=api))

        stored = await reconciler.reconcile(create_test_target(), create_test_token("abc123"))

        assert stored.data == {"token": "abc123"}
        api.replace_namespaced_secret.assert_called_once()
        api.create_namespaced_secret.assert_not_called()


class TestRequestTimeout:
    """Test per-call timeouts under a run deadline."""

    @pytest.mark.asyncio
    async def test_no_deadline_uses_request_timeout(self):
        api = MagicMock()
        api.read_namespaced_secret.return_value = _v1_secret()
        store = KubernetesSecretStore(api=api, request_timeout=30)

        await store.get("gh-token", "ci")

        assert api.read_namespaced_secret.call_args.kwargs["_request_timeout"] == 30

    @pytest.mark.asyncio
    async def test_timeout_capped_by_remaining_deadline(self):
        api = MagicMock()
        api.create_namespaced_secret.return_value = _v1_secret()
        store = KubernetesSecretStore(api=api, request_timeout=30)
        store.set_deadline(time.monotonic() + 2)

        await store.create(StoredSecret(name="gh-token", namespace="ci", type="Opaque"))

        timeout = api.create_namespaced_secret.call_args.kwargs["_request_timeout"]
        assert 0 < timeout <= 2

    @pytest.mark.asyncio
    async def test_expired_deadline_uses_minimum_timeout(self):
        api = MagicMock()
        api.replace_namespaced_secret.return_value = _v1_secret()
        store = KubernetesSecretStore(api=api, request_timeout=30)
        store.set_deadline(time.monotonic() - 5)

        await store.update(StoredSecret(name="gh-token", namespace="ci", type="Opaque"))

        timeout = api.replace_namespaced_secret.call_args.kwargs["_request_timeout"]
        assert timeout == MIN_REQUEST_TIMEOUT
