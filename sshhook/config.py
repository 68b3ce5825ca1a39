"""Configuration loader for the webhook YAML file."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog
import yaml

logger = structlog.get_logger()

DEFAULT_LISTEN = ":8080"
DEFAULT_SHELL_COMMAND = ["/bin/bash"]

# Plain scalars resolve to null or stay as written text
_KEPT_IMPLICIT_TAGS = {"tag:yaml.org,2002:null", "tag:yaml.org,2002:merge"}


class ConfigError(Exception):
    """Raised when the configuration file cannot be loaded or is invalid."""


class TextScalarLoader(yaml.SafeLoader):
    """SafeLoader that keeps plain scalars as their source text.

    Passwords such as ``0123`` or metadata such as ``1.10`` and ``on`` must not
    be turned into numbers or booleans.
    """


TextScalarLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag in _KEPT_IMPLICIT_TAGS]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


@dataclass(frozen=True)
class ClusterConfig:
    """Kubernetes cluster connection parameters."""

    name: str
    host: str
    cacert_file: str = ""
    cert_file: str = ""
    key_file: str = ""
    bearer_token_file: str | None = None
    server_name: str | None = None
    # 0 means unset: the backend default applies
    qps: int = 0
    burst: int = 0


@dataclass(frozen=True)
class UserConfig:
    """User credentials and connection metadata."""

    username: str
    password: str = ""
    public_key: str | None = None
    metadata: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class WebhookConfig:
    """Top-level webhook configuration."""

    listen: str = DEFAULT_LISTEN
    shell_command: list[str] = field(default_factory=lambda: list(DEFAULT_SHELL_COMMAND))
    clusters: list[ClusterConfig] = field(default_factory=list)
    users: list[UserConfig] = field(default_factory=list)


class ConfigLoader:
    """Loads and validates the webhook configuration file."""

    def __init__(self, config_file: str = "webhook.yaml"):
        self.config_file = Path(config_file)

    def load(self) -> WebhookConfig:
        """Read and parse the configuration file.

        Raises:
            ConfigError: If the file is missing, unreadable or malformed.
        """
        try:
            with open(self.config_file) as f:
                content = yaml.load(f, Loader=TextScalarLoader)
        except OSError as e:
            raise ConfigError(f"failed to read config file {self.config_file}: {e}") from e
        except yaml.YAMLError as e:
            raise ConfigError(f"failed to parse config file {self.config_file}: {e}") from e

        if content is None:
            content = {}
        if not isinstance(content, dict):
            raise ConfigError("config file must contain a mapping at the top level")

        config = self._parse_config(content)
        logger.info(
            "Configuration loaded",
            file=str(self.config_file),
            users=len(config.users),
            clusters=len(config.clusters),
            listen=config.listen,
        )
        return config

    def _parse_config(self, content: dict[str, Any]) -> WebhookConfig:
        listen = content.get("listen") or DEFAULT_LISTEN
        if not isinstance(listen, str):
            raise ConfigError("listen must be a string")
        parse_listen_address(listen)

        shell_command = content.get("shellCommand") or list(DEFAULT_SHELL_COMMAND)
        if not isinstance(shell_command, list) or not all(
            isinstance(part, str) for part in shell_command
        ):
            raise ConfigError("shellCommand must be a list of strings")

        clusters = [
            self._parse_cluster(index, entry)
            for index, entry in enumerate(_as_list(content.get("clusters"), "clusters"))
        ]
        users = [
            self._parse_user(index, entry)
            for index, entry in enumerate(_as_list(content.get("users"), "users"))
        ]

        return WebhookConfig(
            listen=listen,
            shell_command=shell_command,
            clusters=clusters,
            users=users,
        )

    def _parse_cluster(self, index: int, entry: Any) -> ClusterConfig:
        """Parse a single cluster entry."""
        where = f"clusters[{index}]"
        if not isinstance(entry, dict):
            raise ConfigError(f"{where} must be a mapping")

        name = _required_string(entry, "name", where)
        where = f"cluster {name!r}"

        return ClusterConfig(
            name=name,
            host=_required_string(entry, "host", where),
            cacert_file=_optional_string(entry, "cacertFile", where) or "",
            cert_file=_optional_string(entry, "certFile", where) or "",
            key_file=_optional_string(entry, "keyFile", where) or "",
            bearer_token_file=_optional_string(entry, "bearerTokenFile", where),
            server_name=_optional_string(entry, "serverName", where),
            qps=_non_negative_int(entry, "qps", where),
            burst=_non_negative_int(entry, "burst", where),
        )

    def _parse_user(self, index: int, entry: Any) -> UserConfig:
        """Parse a single user entry."""
        where = f"users[{index}]"
        if not isinstance(entry, dict):
            raise ConfigError(f"{where} must be a mapping")

        username = _required_string(entry, "username", where)
        where = f"user {username!r}"

        raw_metadata = entry.get("metadata") or {}
        if not isinstance(raw_metadata, dict):
            raise ConfigError(f"{where}: metadata must be a mapping")

        metadata = {}
        for key, value in raw_metadata.items():
            if not isinstance(key, str):
                raise ConfigError(f"{where}: metadata keys must be strings")
            metadata[key] = _scalar_to_string(value, f"{where}: metadata {key!r}")

        return UserConfig(
            username=username,
            password=_scalar_to_string(entry.get("password"), f"{where}: password"),
            public_key=_optional_string(entry, "publicKey", where),
            metadata=metadata,
        )


def _as_list(value: Any, name: str) -> list[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ConfigError(f"{name} must be a list")
    return value


def _required_string(entry: dict[str, Any], key: str, where: str) -> str:
    value = entry.get(key)
    if not isinstance(value, str) or not value:
        raise ConfigError(f"{where}: {key} is required and must be a non-empty string")
    return value


def _optional_string(entry: dict[str, Any], key: str, where: str) -> str | None:
    value = entry.get(key)
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise ConfigError(f"{where}: {key} must be a string")
    return value


def _non_negative_int(entry: dict[str, Any], key: str, where: str) -> int:
    value = entry.get(key)
    if value is None:
        return 0
    if not isinstance(value, str):
        raise ConfigError(f"{where}: {key} must be an integer")
    try:
        value = int(value, 10)
    except ValueError:
        raise ConfigError(f"{where}: {key} must be an integer") from None
    if value < 0:
        raise ConfigError(f"{where}: {key} must not be negative")
    return value


def _scalar_to_string(value: Any, where: str) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    raise ConfigError(f"{where} must be a scalar value")


def parse_listen_address(listen: str) -> tuple[str, int]:
    """Split a ``host:port`` listen address.

    An empty host (``":8080"``) binds all interfaces. IPv6 hosts use the
    bracketed form ``[::1]:8080``.

    Raises:
        ConfigError: If the address has no valid port.
    """
    host, sep, port_text = listen.rpartition(":")
    if not sep:
        raise ConfigError(f"invalid listen address {listen!r}: missing port")

    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    elif ":" in host:
        raise ConfigError(f"invalid listen address {listen!r}: IPv6 hosts need brackets")

    try:
        port = int(port_text)
    except ValueError:
        raise ConfigError(f"invalid listen address {listen!r}: bad port") from None
    if not 0 < port < 65536:
        raise ConfigError(f"invalid listen address {listen!r}: port out of range")

    return host or "0.0.0.0", port

