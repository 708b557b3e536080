"""Admission-controlled launcher for Kubernetes worker Jobs."""

from kube_launcher.core.exceptions import (
    KubeLauncherError,
    MalformedManifestError,
    TemplateError,
    TransportError,
)
from kube_launcher.core.telemetry import init_telemetry
from kube_launcher.execution.factory import (
    AdmissionConfig,
    configure,
    get_admission_config,
    reset_admission_config,
)
from kube_launcher.execution.jobs_manager import AdmissionDecision, JobsManager
from kube_launcher.execution.manifest import Manifest
from kube_launcher.execution.manifest_builder import ManifestBuilder
from kube_launcher.execution.templates import load_manifest, render_manifest
from kube_launcher.jobs.hook import KubernetesJob

__all__ = [
    "AdmissionConfig",
    "AdmissionDecision",
    "JobsManager",
    "KubernetesJob",
    "KubeLauncherError",
    "Manifest",
    "ManifestBuilder",
    "MalformedManifestError",
    "TemplateError",
    "TransportError",
    "configure",
    "get_admission_config",
    "init_telemetry",
    "load_manifest",
    "render_manifest",
    "reset_admission_config",
]
