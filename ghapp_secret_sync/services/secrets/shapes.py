"""Shape-to-data mapping for materialized access tokens."""

import json
from typing import Dict

from ghapp_secret_sync.models.secret_models import SecretShape, SecretTarget, StoredSecret

SECRET_TYPES: Dict[SecretShape, str] = {
    SecretShape.OPAQUE: "Opaque",
    SecretShape.BASIC_AUTH: "kubernetes.io/basic-auth",
    SecretShape.DOCKERCONFIGJSON: "kubernetes.io/dockerconfigjson",
}


def dockerconfigjson(registry_host: str, access_token: str) -> str:
    """Render the .dockerconfigjson payload for ``registry_host``."""
    # Layout is fixed, consumers compare the rendered string
    return (
        '{"auths":{'
        + json.dumps(registry_host)
        + ':{"auth": '
        + json.dumps(f"token:{access_token}")
        + "}}}"
    )


def secret_data(shape: SecretShape, access_token: str, registry_host: str = "ghcr.io") -> Dict[str, str]:
    """Return the secret data fields for ``shape``."""
    if shape is SecretShape.OPAQUE:
        return {"token": access_token}
    if shape is SecretShape.BASIC_AUTH:
        return {"username": "token", "password": access_token}
    if shape is SecretShape.DOCKERCONFIGJSON:
        return {".dockerconfigjson": dockerconfigjson(registry_host, access_token)}
    raise ValueError(f"unknown secret shape: {shape!r}")


def build_secret(target: SecretTarget, access_token: str) -> StoredSecret:
    """Build the full desired secret body for ``target``."""
    return StoredSecret(
        name=target.name,
        namespace=target.namespace,
        type=SECRET_TYPES[target.shape],
        data=secret_data(target.shape, access_token, target.registry_host),
        annotations=dict(target.annotations),
    )
