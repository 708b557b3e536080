"""
Before-enqueue hook that launches Kubernetes worker Jobs.

Mix KubernetesJob into a job class and have the broker call
before_enqueue() right before it persists the job payload. The hook works
the same whether the job class keeps its accessors at class level and the
broker calls Job.before_enqueue(), or keeps them on instances and the broker
calls job.before_enqueue().

Example:
    class ResizeImages(KubernetesJob):
        @classmethod
        def job_manifest(cls):
            return render_manifest("resize_job.yaml.j2", TEMPLATE_DIR)

        @classmethod
        def max_workers(cls):
            return 3

    ResizeImages.before_enqueue()
"""

import re
import types
from typing import Any, Dict, Optional

from kube_launcher.core.telemetry import get_logger
from kube_launcher.execution.factory import AdmissionConfig, get_admission_config
from kube_launcher.execution.jobs_manager import JobsManager, resolve_ceiling

logger = get_logger(__name__)


class hybridmethod:
    """Binds to the instance when accessed through one, otherwise to the class."""

    def __init__(self, func):
        self.__func__ = func
        self.__doc__ = func.__doc__
        self.__name__ = func.__name__

    def __get__(self, obj, objtype=None):
        target = objtype if obj is None else obj
        return types.MethodType(self.__func__, target)


def _dns_name(class_name: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "-", class_name).lower()


class KubernetesJob:
    """Capability mixin adding admission-controlled worker launching."""

    # Pin a specific config instead of the process-wide one
    admission_config: Optional[AdmissionConfig] = None

    @hybridmethod
    def job_manifest(self) -> Dict[str, Any]:
        """Job template for this job's workers. Override per job class."""
        owner = self if isinstance(self, type) else type(self)
        return {
            "metadata": {"name": _dns_name(owner.__name__)},
            "spec": {
                "template": {
                    "spec": {"containers": [{"name": "worker"}]},
                },
            },
        }

    @hybridmethod
    def max_workers(self) -> Optional[int]:
        """Job-specific ceiling; None defers to the process-wide default."""
        return None

    @hybridmethod
    def before_enqueue(self) -> None:
        """Launch a worker Job if the group is below its ceiling."""
        config = self.admission_config or get_admission_config()
        if not config.enabled:
            return

        job_max_workers = self.max_workers
        if callable(job_max_workers):
            job_max_workers = job_max_workers()

        ceiling = resolve_ceiling(job_max_workers, config)
        manager = JobsManager(config)
        decision = manager.try_launch(self.job_manifest(), ceiling)
        if decision.job_name:
            logger.info(f"Launched worker job {decision.job_name} for {decision.group}")
