"""Read-only user and cluster directory."""

from collections.abc import Iterable

import structlog

from .config import ClusterConfig, ConfigError, UserConfig, WebhookConfig

logger = structlog.get_logger()


class Directory:
    """In-memory lookup of users by username and clusters by name.

    Built once at startup and never mutated, so it can be shared by all
    request handlers without locking.
    """

    def __init__(
        self,
        users: Iterable[UserConfig] = (),
        clusters: Iterable[ClusterConfig] = (),
    ):
        self._users: dict[str, UserConfig] = {}
        self._clusters: dict[str, ClusterConfig] = {}

        for user in users:
            if user.username in self._users:
                raise ConfigError(f"duplicate username: {user.username!r}")
            self._users[user.username] = user

        for cluster in clusters:
            if cluster.name in self._clusters:
                raise ConfigError(f"duplicate cluster name: {cluster.name!r}")
            self._clusters[cluster.name] = cluster

    @classmethod
    def from_config(cls, config: WebhookConfig) -> "Directory":
        """Build the directory from a loaded configuration."""
        directory = cls(config.users, config.clusters)
        logger.info(
            "Directory built",
            users=directory.user_count,
            clusters=directory.cluster_count,
        )
        return directory

    def find_user(self, username: str) -> UserConfig | None:
        """Get a user by exact, case-sensitive username."""
        return self._users.get(username)

    def find_cluster(self, name: str) -> ClusterConfig | None:
        """Get a cluster by exact, case-sensitive name."""
        return self._clusters.get(name)

    @property
    def user_count(self) -> int:
        return len(self._users)

    @property
    def cluster_count(self) -> int:
        return len(self._clusters)
