"""
Cluster access, manifest building and admission control for worker Jobs.
"""

from kube_launcher.execution.cluster_client import ClusterClient
from kube_launcher.execution.jobs_manager import JobsManager
from kube_launcher.execution.manifest_builder import ManifestBuilder

__all__ = ["ClusterClient", "JobsManager", "ManifestBuilder"]
