import pytest
from unittest.mock import MagicMock

from kube_launcher.execution.cluster_client import ClusterClient


def thing_manifest():
    return {
        "metadata": {"name": "thing"},
        "spec": {
            "template": {
                "spec": {"containers": [{}]},
            },
        },
    }


@pytest.fixture
def base_manifest():
    """Minimal worker template named 'thing'."""
    return thing_manifest()


@pytest.fixture
def mock_cluster_client():
    """ClusterClient double reporting an empty cluster."""
    cluster_client = MagicMock(spec=ClusterClient)
    cluster_client.list_jobs.return_value = []
    cluster_client.list_pods.return_value = []
    cluster_client.default_namespace.return_value = None
    cluster_client.create_job.side_effect = lambda manifest, namespace: manifest.get(
        "metadata.name"
    )
    return cluster_client
