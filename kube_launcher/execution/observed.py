"""
Snapshots of cluster Jobs and Pods used for admission counting.

Only the fields the admission decision reads are captured; everything else
about the live objects is ignored.
"""

from typing import Any, List, Optional

from pydantic import BaseModel, Field

from kube_launcher.core.constants import OOM_KILLED_REASON, PodPhase


class ObservedJob(BaseModel):
    """Completion counters of a cluster Job."""

    name: Optional[str] = None
    namespace: Optional[str] = None
    completions: Optional[int] = Field(
        default=None, description="spec.completions, None when unreported"
    )
    succeeded: Optional[int] = Field(
        default=None, description="status.succeeded, None when unreported"
    )

    @property
    def finished(self) -> bool:
        # Unknown counters are treated as still running
        if self.completions is None or self.succeeded is None:
            return False
        return self.succeeded >= self.completions

    @property
    def active(self) -> bool:
        return not self.finished

    @classmethod
    def from_api(cls, job: Any) -> "ObservedJob":
        """Build from a kubernetes.client V1Job."""
        metadata = getattr(job, "metadata", None)
        spec = getattr(job, "spec", None)
        status = getattr(job, "status", None)
        return cls(
            name=getattr(metadata, "name", None),
            namespace=getattr(metadata, "namespace", None),
            completions=getattr(spec, "completions", None),
            succeeded=getattr(status, "succeeded", None),
        )


class ObservedContainer(BaseModel):
    name: Optional[str] = None
    terminated: bool = False
    reason: Optional[str] = None


class ObservedPod(BaseModel):
    """Phase and container terminal states of a worker Pod."""

    name: Optional[str] = None
    phase: Optional[str] = None
    containers: List[ObservedContainer] = Field(default_factory=list)

    @property
    def terminated(self) -> bool:
        """True when every reported container has terminated."""
        if self.phase in (PodPhase.SUCCEEDED.value, PodPhase.FAILED.value):
            return True
        return bool(self.containers) and all(c.terminated for c in self.containers)

    @property
    def oom_killed(self) -> bool:
        return any(c.reason == OOM_KILLED_REASON for c in self.containers)

    @classmethod
    def from_api(cls, pod: Any) -> "ObservedPod":
        """Build from a kubernetes.client V1Pod."""
        metadata = getattr(pod, "metadata", None)
        status = getattr(pod, "status", None)
        containers = []
        for container_status in getattr(status, "container_statuses", None) or []:
            state = getattr(container_status, "state", None)
            terminated = getattr(state, "terminated", None)
            containers.append(
                ObservedContainer(
                    name=getattr(container_status, "name", None),
                    terminated=terminated is not None,
                    reason=getattr(terminated, "reason", None),
                )
            )
        return cls(
            name=getattr(metadata, "name", None),
            phase=getattr(status, "phase", None),
            containers=containers,
        )
