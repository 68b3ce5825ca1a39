"""Unit tests for the user and cluster directory."""

import pytest

from sshhook.config import ClusterConfig, ConfigError, UserConfig, WebhookConfig
from sshhook.directory import Directory


def make_directory() -> Directory:
    return Directory(
        users=[
            UserConfig(username="user1", password="pass1"),
            UserConfig(username="user2", password="pass2"),
            UserConfig(username="user3", password="pass3"),
        ],
        clusters=[
            ClusterConfig(name="prod", host="https://prod:6443"),
            ClusterConfig(name="staging", host="https://staging:6443"),
        ],
    )


class TestDirectory:
    """Test Directory lookups."""

    def test_find_user(self) -> None:
        """Test finding an existing user."""
        user = make_directory().find_user("user2")

        assert user is not None
        assert user.username == "user2"
        assert user.password == "pass2"

    def test_find_user_not_found(self) -> None:
        """Test looking up an unknown user."""
        assert make_directory().find_user("nonexistent") is None

    def test_find_user_is_case_sensitive(self) -> None:
        """Test that usernames must match exactly."""
        directory = make_directory()

        assert directory.find_user("USER1") is None
        assert directory.find_user("user1 ") is None

    def test_find_user_empty_directory(self) -> None:
        """Test lookups on an empty directory."""
        directory = Directory()

        assert directory.find_user("anyuser") is None
        assert directory.find_cluster("anycluster") is None
        assert directory.user_count == 0
        assert directory.cluster_count == 0

    def test_find_cluster(self) -> None:
        """Test finding a cluster by name."""
        cluster = make_directory().find_cluster("staging")

        assert cluster is not None
        assert cluster.host == "https://staging:6443"

    def test_find_cluster_not_found(self) -> None:
        """Test looking up an unknown cluster."""
        directory = make_directory()

        assert directory.find_cluster("dev") is None
        assert directory.find_cluster("Prod") is None

    def test_counts(self) -> None:
        """Test user and cluster counts."""
        directory = make_directory()

        assert directory.user_count == 3
        assert directory.cluster_count == 2

    def test_duplicate_username_rejected(self) -> None:
        """Test that duplicate usernames fail construction."""
        with pytest.raises(ConfigError, match="duplicate username"):
            Directory(
                users=[
                    UserConfig(username="user1", password="a"),
                    UserConfig(username="user1", password="b"),
                ]
            )

    def test_duplicate_cluster_rejected(self) -> None:
        """Test that duplicate cluster names fail construction."""
        with pytest.raises(ConfigError, match="duplicate cluster name"):
            Directory(
                clusters=[
                    ClusterConfig(name="prod", host="https://a"),
                    ClusterConfig(name="prod", host="https://b"),
                ]
            )

    def test_from_config(self) -> None:
        """Test building the directory from a loaded config."""
        config = WebhookConfig(
            users=[UserConfig(username="alice", password="s3cret")],
            clusters=[ClusterConfig(name="prod", host="https://prod:6443")],
        )

        directory = Directory.from_config(config)

        assert directory.find_user("alice") is config.users[0]
        assert directory.find_cluster("prod") is config.clusters[0]
