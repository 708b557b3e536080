"""
Finalizes caller-supplied Job templates before submission.

The builder never mutates its input. Every call returns a fresh Manifest
labeled for admission counting, uniquely named, placed in a namespace and
configured to run the worker once.
"""

import random
from typing import Any, List, Mapping, Optional

from kube_launcher.core.constants import (
    DEFAULT_NAMESPACE,
    DEFAULT_RESTART_POLICY,
    GROUP_LABEL,
    INTERVAL_ENV_NAME,
    INTERVAL_ENV_VALUE,
    NAME_SUFFIX_ALPHABET,
    NAME_SUFFIX_LENGTH,
    ROLE_LABEL,
    LabelRole,
)
from kube_launcher.core.exceptions import MalformedManifestError
from kube_launcher.execution.manifest import Manifest

JOB_LABELS_PATH = ["metadata", "labels"]
POD_LABELS_PATH = ["spec", "template", "metadata", "labels"]
POD_SPEC_PATH = ["spec", "template", "spec"]


def random_suffix(length: int = NAME_SUFFIX_LENGTH) -> str:
    """DNS-safe random suffix of lowercase letters and digits."""
    return "".join(random.choices(NAME_SUFFIX_ALPHABET, k=length))


def group_name_for(manifest: Mapping[str, Any]) -> str:
    """Group key of a template: its group label if already built, else its name."""
    document = manifest if isinstance(manifest, Manifest) else Manifest(manifest)
    group = document.get(JOB_LABELS_PATH + [GROUP_LABEL])
    if group:
        return group
    name = document.get("metadata.name")
    if not isinstance(name, str) or not name:
        raise MalformedManifestError("Manifest is missing 'metadata.name'")
    return name


def resolve_namespace(
    manifest: Mapping[str, Any],
    context_namespace: Optional[str] = None,
    fallback: str = DEFAULT_NAMESPACE,
) -> str:
    """Manifest namespace, then the auth context's, then the fallback."""
    document = manifest if isinstance(manifest, Manifest) else Manifest(manifest)
    return document.get("metadata.namespace") or context_namespace or fallback


class ManifestBuilder:
    """Turns a WorkerSpec template into a submittable Job manifest."""

    def build(
        self,
        base_manifest: Mapping[str, Any],
        group_name: Optional[str] = None,
        namespace: Optional[str] = None,
    ) -> Manifest:
        """
        Build a finalized Job manifest.

        Args:
            base_manifest: Template with at least metadata.name and pod containers
            group_name: Admission group, defaults to the template's name
            namespace: Namespace from the authentication context, used when the
                template does not declare one

        Returns:
            New Manifest; base_manifest is left untouched
        """
        manifest = Manifest(base_manifest)
        group = group_name or group_name_for(manifest)
        self._validate(manifest)

        self._apply_labels(manifest, group)
        manifest.set("metadata.name", f"{group}-{random_suffix()}")
        manifest.set("metadata.namespace", resolve_namespace(manifest, namespace))
        manifest.setdefault(POD_SPEC_PATH + ["restartPolicy"], DEFAULT_RESTART_POLICY)
        self._force_interval(manifest)

        return manifest

    def rename(self, manifest: Manifest) -> Manifest:
        """Copy of a built manifest with a freshly generated name."""
        renamed = manifest.copy()
        renamed.set("metadata.name", f"{group_name_for(renamed)}-{random_suffix()}")
        return renamed

    def _validate(self, manifest: Manifest) -> None:
        manifest.require("metadata.name", str)
        if manifest.get("metadata.labels") is not None:
            manifest.require("metadata.labels", dict)
        containers = manifest.require(POD_SPEC_PATH + ["containers"], list)
        if not containers:
            raise MalformedManifestError(
                "Manifest 'spec.template.spec.containers' must not be empty"
            )
        if not isinstance(containers[0], dict):
            raise MalformedManifestError("Pod containers must be mappings")

    def _apply_labels(self, manifest: Manifest, group: str) -> None:
        manifest.set(JOB_LABELS_PATH + [ROLE_LABEL], LabelRole.JOB.value)
        manifest.set(JOB_LABELS_PATH + [GROUP_LABEL], group)
        manifest.set(POD_LABELS_PATH + [ROLE_LABEL], LabelRole.POD.value)
        manifest.set(POD_LABELS_PATH + [GROUP_LABEL], group)

    def _force_interval(self, manifest: Manifest) -> None:
        container = manifest.get(POD_SPEC_PATH + ["containers", 0])
        env: List[Any] = container.get("env") or []
        if not isinstance(env, list):
            raise MalformedManifestError("Container 'env' must be a list")

        # Kubernetes applies the last duplicate, so every entry is forced
        found = False
        for entry in env:
            if isinstance(entry, dict) and entry.get("name") == INTERVAL_ENV_NAME:
                entry.pop("valueFrom", None)
                entry["value"] = INTERVAL_ENV_VALUE
                found = True
        if not found:
            env.append({"name": INTERVAL_ENV_NAME, "value": INTERVAL_ENV_VALUE})

        container["env"] = env
