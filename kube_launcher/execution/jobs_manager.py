"""
Admission control for worker Jobs.

Before a job is enqueued the manager counts the group's Jobs that still
occupy a worker slot and launches another one only while that count is
below the ceiling. Cluster state is fetched fresh on every decision.

There is no lock between counting and creating, so concurrent enqueuers can
briefly overshoot the ceiling; the cluster remains the final arbiter.
"""

from typing import Any, List, Mapping, Optional

from pydantic import BaseModel, Field

from kube_launcher.core.constants import GROUP_LABEL, ROLE_LABEL, LabelRole
from kube_launcher.core.exceptions import TransportError
from kube_launcher.core.telemetry import get_logger, log_span_event, trace_span
from kube_launcher.execution.cluster_client import ClusterClient
from kube_launcher.execution.factory import AdmissionConfig
from kube_launcher.execution.manifest import Manifest
from kube_launcher.execution.manifest_builder import (
    ManifestBuilder,
    group_name_for,
    resolve_namespace,
)
from kube_launcher.execution.observed import ObservedPod

logger = get_logger(__name__)

HTTP_CONFLICT = 409


class AdmissionDecision(BaseModel):
    """Outcome of one admission check."""

    group: Optional[str] = None
    namespace: Optional[str] = None
    ceiling: Optional[int] = None
    active_jobs: int = 0
    finished_jobs: int = 0
    terminated_pods: int = 0
    oom_killed_pods: List[str] = Field(default_factory=list)
    admitted: bool = False
    job_name: Optional[str] = None


def resolve_ceiling(
    job_max_workers: Optional[int], config: AdmissionConfig
) -> Optional[int]:
    """
    Effective ceiling for a job class.

    The job-specific value wins over the process-wide default. When neither is
    set the result is 0 (deny) unless unlimited workers are explicitly allowed,
    in which case None means no limit.
    """
    if job_max_workers is not None:
        return job_max_workers
    if config.max_workers is not None:
        return config.max_workers
    return None if config.allow_unlimited else 0


def has_capacity(active: int, ceiling: Optional[int]) -> bool:
    if ceiling is None:
        return True
    return active < ceiling


def job_selector(group: str) -> str:
    return f"{ROLE_LABEL}={LabelRole.JOB.value},{GROUP_LABEL}={group}"


def pod_selector(group: str) -> str:
    return f"{ROLE_LABEL}={LabelRole.POD.value},{GROUP_LABEL}={group}"


class JobsManager:
    """Decides whether to launch another worker Job and launches it."""

    def __init__(
        self,
        config: AdmissionConfig,
        cluster_client: Optional[ClusterClient] = None,
        builder: Optional[ManifestBuilder] = None,
    ):
        self.config = config
        self._client = cluster_client
        self.builder = builder or ManifestBuilder()

    @property
    def client(self) -> ClusterClient:
        if self._client is None:
            self._client = ClusterClient(api_client=self.config.api_client)
        return self._client

    def should_admit(
        self, group_name: str, ceiling: Optional[int], namespace: Optional[str] = None
    ) -> bool:
        """True when the group has fewer active Jobs than the ceiling."""
        if not self.config.enabled:
            return False
        if ceiling is not None and ceiling <= 0:
            return False
        namespace = namespace or resolve_namespace(
            {}, self.client.default_namespace(), self.config.default_namespace
        )
        decision = self._evaluate(group_name, ceiling, namespace)
        return decision.admitted

    @trace_span
    def try_launch(
        self, base_manifest: Mapping[str, Any], ceiling: Optional[int]
    ) -> AdmissionDecision:
        """
        Launch a worker Job for the template's group if capacity allows.

        Args:
            base_manifest: Caller-supplied Job template
            ceiling: Maximum concurrently active Jobs for the group, None for no limit

        Returns:
            AdmissionDecision describing what was observed and done

        Raises:
            TransportError: Cluster API failure
            MalformedManifestError: Template lacks required structure
        """
        if not self.config.enabled:
            logger.debug("Launcher disabled, skipping admission")
            return AdmissionDecision(ceiling=ceiling)

        group = group_name_for(base_manifest)

        if ceiling is not None and ceiling <= 0:
            logger.info(f"Ceiling for {group} is {ceiling}, not launching a job")
            return AdmissionDecision(group=group, ceiling=ceiling)

        context_namespace = None
        if not Manifest(base_manifest).get("metadata.namespace"):
            context_namespace = self.client.default_namespace()
        namespace = resolve_namespace(
            base_manifest, context_namespace, self.config.default_namespace
        )

        decision = self._evaluate(group, ceiling, namespace)
        if not decision.admitted:
            return decision

        manifest = self.builder.build(base_manifest, group, namespace)
        decision.job_name = self._create(manifest, namespace)
        return decision

    def _evaluate(
        self, group: str, ceiling: Optional[int], namespace: str
    ) -> AdmissionDecision:
        jobs = self.client.list_jobs(job_selector(group), namespace)
        active = [job for job in jobs if job.active]
        finished = [job for job in jobs if job.finished]

        pods = self.client.list_pods(pod_selector(group), namespace)
        terminated = [pod for pod in pods if pod.terminated]
        oom_killed = self._oom_killed(pods)

        decision = AdmissionDecision(
            group=group,
            namespace=namespace,
            ceiling=ceiling,
            active_jobs=len(active),
            finished_jobs=len(finished),
            terminated_pods=len(terminated),
            oom_killed_pods=oom_killed,
            admitted=has_capacity(len(active), ceiling),
        )

        log_span_event(
            f"Admission for {group}: {len(active)} active, "
            f"{len(finished)} finished, ceiling {ceiling}, "
            f"{'admitted' if decision.admitted else 'denied'}",
            {
                "group": group,
                "namespace": namespace,
                "active_jobs": len(active),
                "finished_jobs": len(finished),
                "terminated_pods": len(terminated),
                "oom_killed_pods": len(oom_killed),
                "admitted": decision.admitted,
            },
        )
        return decision

    def _oom_killed(self, pods: List[ObservedPod]) -> List[str]:
        names = []
        for pod in pods:
            if pod.oom_killed:
                logger.warning(f"Worker pod {pod.name} was terminated with OOMKilled")
                names.append(pod.name or "")
        return names

    def _create(self, manifest: Manifest, namespace: str) -> str:
        retries = max(self.config.name_conflict_retries, 0)
        attempt = 0
        while True:
            try:
                return self.client.create_job(manifest, namespace)
            except TransportError as e:
                if e.status != HTTP_CONFLICT or attempt >= retries:
                    raise
                attempt += 1
                logger.warning(
                    f"Job name {manifest.get('metadata.name')} already exists, "
                    f"retrying with a new name ({attempt}/{retries})"
                )
                manifest = self.builder.rename(manifest)
