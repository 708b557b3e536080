from enum import Enum

# Label scheme shared with any tooling that inspects launched workers
ROLE_LABEL = "resque-kubernetes"
GROUP_LABEL = "resque-kubernetes-group"

DEFAULT_NAMESPACE = "default"
DEFAULT_RESTART_POLICY = "OnFailure"

# Workers launched as Jobs must drain the queue once and exit
INTERVAL_ENV_NAME = "INTERVAL"
INTERVAL_ENV_VALUE = "0"

NAME_SUFFIX_LENGTH = 5
NAME_SUFFIX_ALPHABET = "abcdefghijklmnopqrstuvwxyz0123456789"

OOM_KILLED_REASON = "OOMKilled"

SERVICE_ACCOUNT_DIR = "/var/run/secrets/kubernetes.io/serviceaccount"


class LabelRole(str, Enum):
    """Role marker values for the role label."""

    JOB = "job"
    POD = "pod"


class PodPhase(str, Enum):
    """Pod lifecycle phases reported by the cluster."""

    PENDING = "Pending"
    RUNNING = "Running"
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"
    UNKNOWN = "Unknown"


class ContextSource(str, Enum):
    """Where cluster connection details were discovered."""

    IN_CLUSTER = "in_cluster"
    KUBECONFIG = "kubeconfig"
