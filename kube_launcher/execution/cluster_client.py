"""
Kubernetes API facade for worker Job admission.

Exposes the three calls the launcher needs:
- list Jobs by label selector
- list Pods by label selector
- create a Job from a manifest
"""

from typing import List, Optional

from kubernetes import client
from kubernetes.client.rest import ApiException
from urllib3.exceptions import HTTPError

from kube_launcher.core.exceptions import TransportError
from kube_launcher.core.telemetry import get_logger, trace_span
from kube_launcher.execution.context import ContextFactory
from kube_launcher.execution.manifest import Manifest
from kube_launcher.execution.observed import ObservedJob, ObservedPod

logger = get_logger(__name__)


class ClusterClient:
    """Lazily-connected wrapper around the BatchV1 and CoreV1 APIs."""

    def __init__(
        self,
        api_client: Optional[client.ApiClient] = None,
        context_factory: Optional[ContextFactory] = None,
    ):
        """
        Args:
            api_client: Pre-configured client used verbatim; skips credential discovery
            context_factory: Source of ambient credentials when no client is given
        """
        self._api_client = api_client
        self.context_factory = context_factory or ContextFactory()
        self._batch_v1: Optional[client.BatchV1Api] = None
        self._core_v1: Optional[client.CoreV1Api] = None

    @property
    def api_client(self) -> client.ApiClient:
        if self._api_client is None:
            self._api_client = self.context_factory.api_client()
        return self._api_client

    @property
    def batch_v1(self) -> client.BatchV1Api:
        if self._batch_v1 is None:
            self._batch_v1 = client.BatchV1Api(self.api_client)
        return self._batch_v1

    @property
    def core_v1(self) -> client.CoreV1Api:
        if self._core_v1 is None:
            self._core_v1 = client.CoreV1Api(self.api_client)
        return self._core_v1

    def default_namespace(self) -> Optional[str]:
        """Namespace provided by the authentication context, if any."""
        if self._api_client is not None:
            # Caller-supplied clients carry no discoverable context
            return None
        cluster_context = self.context_factory.context()
        return cluster_context.namespace if cluster_context else None

    @trace_span
    def list_jobs(self, label_selector: str, namespace: str) -> List[ObservedJob]:
        try:
            jobs = self.batch_v1.list_namespaced_job(
                namespace=namespace, label_selector=label_selector
            )
        except ApiException as e:
            logger.error(f"Failed to list jobs matching {label_selector}: {e.reason}")
            raise TransportError(
                f"Failed to list jobs: {e.reason}", status=e.status, reason=e.reason
            )
        except HTTPError as e:
            logger.error(f"Cluster unreachable listing jobs: {e}")
            raise TransportError(f"Failed to list jobs: {e}")

        return [ObservedJob.from_api(job) for job in jobs.items or []]

    @trace_span
    def list_pods(self, label_selector: str, namespace: str) -> List[ObservedPod]:
        try:
            pods = self.core_v1.list_namespaced_pod(
                namespace=namespace, label_selector=label_selector
            )
        except ApiException as e:
            logger.error(f"Failed to list pods matching {label_selector}: {e.reason}")
            raise TransportError(
                f"Failed to list pods: {e.reason}", status=e.status, reason=e.reason
            )
        except HTTPError as e:
            logger.error(f"Cluster unreachable listing pods: {e}")
            raise TransportError(f"Failed to list pods: {e}")

        return [ObservedPod.from_api(pod) for pod in pods.items or []]

    @trace_span
    def create_job(self, manifest: Manifest, namespace: str) -> str:
        """Create a Job and return its name."""
        job_name = manifest.get("metadata.name")
        try:
            created = self.batch_v1.create_namespaced_job(
                namespace=namespace, body=manifest.to_dict()
            )
        except ApiException as e:
            logger.error(f"Failed to create job {job_name}: {e.reason}")
            raise TransportError(
                f"Failed to create job {job_name}: {e.reason}",
                status=e.status,
                reason=e.reason,
            )
        except HTTPError as e:
            logger.error(f"Cluster unreachable creating job {job_name}: {e}")
            raise TransportError(f"Failed to create job {job_name}: {e}")

        created_name = getattr(getattr(created, "metadata", None), "name", None)
        if not isinstance(created_name, str):
            created_name = job_name
        logger.info(f"Created job {created_name} in namespace {namespace}")
        return created_name
