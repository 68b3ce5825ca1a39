"""JSON request and response shapes of the SSH gateway webhook protocol."""

import base64
import binascii
from dataclasses import dataclass, field
from typing import Any

from .auth.models import AuthDecision
from .target import BackendTarget

BACKEND_KUBERNETES = "kubernetes"

# Connection metadata fields echoed back in the config response
_ECHOED_FIELDS = (
    "username",
    "remoteAddress",
    "connectionId",
    "clientVersion",
    "authenticatedUsername",
    "metadata",
    "environment",
    "files",
)


class RequestError(ValueError):
    """The request body does not match the expected shape."""


def _string_field(body: dict[str, Any], name: str) -> str:
    value = body.get(name, "")
    if value is None:
        return ""
    if not isinstance(value, str):
        raise RequestError(f"field {name} must be a string")
    return value


def _as_object(body: Any) -> dict[str, Any]:
    if not isinstance(body, dict):
        raise RequestError("request body must be a JSON object")
    return body


@dataclass
class PasswordAuthRequest:
    username: str
    password_base64: str
    remote_address: str = ""
    connection_id: str = ""

    @classmethod
    def from_json(cls, body: Any) -> "PasswordAuthRequest":
        body = _as_object(body)
        return cls(
            username=_string_field(body, "username"),
            password_base64=_string_field(body, "passwordBase64"),
            remote_address=_string_field(body, "remoteAddress"),
            connection_id=_string_field(body, "connectionId"),
        )


@dataclass
class PublicKeyAuthRequest:
    username: str
    public_key: str
    remote_address: str = ""
    connection_id: str = ""

    @classmethod
    def from_json(cls, body: Any) -> "PublicKeyAuthRequest":
        body = _as_object(body)
        return cls(
            username=_string_field(body, "username"),
            public_key=_string_field(body, "publicKey"),
            remote_address=_string_field(body, "remoteAddress"),
            connection_id=_string_field(body, "connectionId"),
        )


@dataclass
class ConfigRequest:
    username: str
    authenticated_username: str
    remote_address: str = ""
    connection_id: str = ""
    connection_metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_json(cls, body: Any) -> "ConfigRequest":
        body = _as_object(body)
        return cls(
            username=_string_field(body, "username"),
            authenticated_username=_string_field(body, "authenticatedUsername"),
            remote_address=_string_field(body, "remoteAddress"),
            connection_id=_string_field(body, "connectionId"),
            connection_metadata={
                key: body[key] for key in _ECHOED_FIELDS if body.get(key) is not None
            },
        )


def decode_password(password_base64: str) -> bytes | None:
    """Decode a standard Base64 password, or None if it is not valid Base64."""
    try:
        return base64.b64decode(password_base64, validate=True)
    except (binascii.Error, ValueError):
        return None


def encode_auth_response(decision: AuthDecision) -> dict[str, Any]:
    """Build the auth callback response body.

    Rejections carry nothing but the success flag.
    """
    if not decision.accepted:
        return {"success": False}

    response: dict[str, Any] = {
        "success": True,
        "authenticatedUsername": decision.identity,
    }
    if decision.metadata:
        response["metadata"] = {
            key: {"value": value, "sensitive": False}
            for key, value in decision.metadata.items()
        }
    return response


def encode_kubernetes_config(
    target: BackendTarget, shell_command: list[str]
) -> dict[str, Any]:
    """Build the Kubernetes backend section for a resolved target."""
    cluster = target.cluster

    connection: dict[str, Any] = {
        "host": cluster.host,
        "cacertFile": cluster.cacert_file,
        "certFile": cluster.cert_file,
        "keyFile": cluster.key_file,
    }
    if cluster.bearer_token_file:
        connection["bearerTokenFile"] = cluster.bearer_token_file
    if cluster.server_name:
        connection["serverName"] = cluster.server_name
    if cluster.qps > 0:
        connection["qps"] = cluster.qps
    if cluster.burst > 0:
        connection["burst"] = cluster.burst

    pod: dict[str, Any] = {
        "metadata": {"name": target.pod_name, "namespace": target.namespace},
        "shellCommand": list(shell_command),
        # Sessions attach to an existing pod, which has no agent installed
        "disableAgent": True,
    }
    if target.container_name:
        pod["spec"] = {"containers": [{"name": target.container_name}]}
        pod["consoleContainerNumber"] = 0

    return {"connection": connection, "pod": pod}


def encode_config_response(
    request: ConfigRequest, target: BackendTarget, shell_command: list[str]
) -> dict[str, Any]:
    """Build the config callback response body."""
    response = dict(request.connection_metadata)
    response["config"] = {
        "backend": BACKEND_KUBERNETES,
        "kubernetes": encode_kubernetes_config(target, shell_command),
    }
    return response
