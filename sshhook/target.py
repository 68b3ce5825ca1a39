"""Backend target resolution from authenticated user metadata."""

from dataclasses import dataclass

from .auth.models import AuthDecision
from .config import ClusterConfig
from .directory import Directory

CLUSTER_NAME_KEY = "KUBERNETES_CLUSTER"
POD_NAMESPACE_KEY = "KUBERNETES_POD_NAMESPACE"
POD_NAME_KEY = "KUBERNETES_POD_NAME"
CONTAINER_NAME_KEY = "KUBERNETES_CONTAINER_NAME"


class ConfigResolutionError(Exception):
    """A backend configuration could not be produced for an authenticated user."""

    status_code = 400

    def __init__(self, message: str, username: str = ""):
        super().__init__(message)
        self.message = message
        self.username = username


class UserNotFound(ConfigResolutionError):
    status_code = 404


class MissingClusterName(ConfigResolutionError):
    status_code = 400


class ClusterNotFound(ConfigResolutionError):
    status_code = 404

    def __init__(self, message: str, username: str = "", cluster_name: str = ""):
        super().__init__(message, username)
        self.cluster_name = cluster_name


class MissingPodSpec(ConfigResolutionError):
    status_code = 400


@dataclass(frozen=True)
class BackendTarget:
    """Resolved execution destination for an authenticated session."""

    cluster: ClusterConfig
    namespace: str
    pod_name: str
    # None selects the pod's first container
    container_name: str | None = None


class TargetResolver:
    """Derives a BackendTarget from an accepted AuthDecision."""

    def __init__(self, directory: Directory):
        self.directory = directory

    def resolve(self, decision: AuthDecision) -> BackendTarget:
        """Resolve cluster, namespace, pod and container for a user.

        Raises:
            ValueError: If the decision was not accepted
            MissingClusterName: If the cluster metadata key is missing or empty
            ClusterNotFound: If the named cluster is not configured
            MissingPodSpec: If the pod namespace or name is missing or empty
        """
        if not decision.accepted:
            raise ValueError("cannot resolve a target for a rejected decision")

        username = decision.identity
        metadata = decision.metadata

        cluster_name = metadata.get(CLUSTER_NAME_KEY, "")
        if not cluster_name:
            raise MissingClusterName("Missing cluster configuration", username)

        cluster = self.directory.find_cluster(cluster_name)
        if cluster is None:
            raise ClusterNotFound("Cluster not found", username, cluster_name)

        namespace = metadata.get(POD_NAMESPACE_KEY, "")
        pod_name = metadata.get(POD_NAME_KEY, "")
        if not namespace or not pod_name:
            raise MissingPodSpec("Missing pod configuration", username)

        return BackendTarget(
            cluster=cluster,
            namespace=namespace,
            pod_name=pod_name,
            container_name=metadata.get(CONTAINER_NAME_KEY) or None,
        )
