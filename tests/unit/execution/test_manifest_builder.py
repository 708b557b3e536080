import copy
import re

import pytest

from kube_launcher.core.exceptions import MalformedManifestError
from kube_launcher.execution.manifest_builder import (
    ManifestBuilder,
    group_name_for,
    random_suffix,
    resolve_namespace,
)


@pytest.fixture
def builder():
    return ManifestBuilder()


class TestLabels:
    """Tests for role and group labels on built manifests."""

    def test_labels_job_and_pod(self, builder, base_manifest):
        manifest = builder.build(base_manifest)

        assert manifest["metadata"]["labels"]["resque-kubernetes"] == "job"
        pod_labels = manifest["spec"]["template"]["metadata"]["labels"]
        assert pod_labels["resque-kubernetes"] == "pod"

    def test_group_label_is_original_name(self, builder, base_manifest):
        manifest = builder.build(base_manifest)

        assert manifest["metadata"]["labels"]["resque-kubernetes-group"] == "thing"
        pod_labels = manifest["spec"]["template"]["metadata"]["labels"]
        assert pod_labels["resque-kubernetes-group"] == "thing"

    def test_existing_labels_are_kept(self, builder, base_manifest):
        base_manifest["metadata"]["labels"] = {"team": "imaging"}

        manifest = builder.build(base_manifest)

        assert manifest["metadata"]["labels"]["team"] == "imaging"
        assert manifest["metadata"]["labels"]["resque-kubernetes"] == "job"

    def test_rebuilding_does_not_duplicate_labels(self, builder, base_manifest):
        first = builder.build(base_manifest)
        second = builder.build(first)

        assert second["metadata"]["labels"] == first["metadata"]["labels"]
        assert (
            second["spec"]["template"]["metadata"]["labels"]
            == first["spec"]["template"]["metadata"]["labels"]
        )
        assert re.match(r"^thing-[a-z0-9]{5}$", second["metadata"]["name"])

    def test_null_labels_block(self, builder, base_manifest):
        """YAML `labels:` with no entries parses as None."""
        base_manifest["metadata"]["labels"] = None

        manifest = builder.build(base_manifest)

        assert manifest["metadata"]["labels"]["resque-kubernetes-group"] == "thing"


class TestNaming:
    def test_name_is_made_unique(self, builder, base_manifest):
        manifest = builder.build(base_manifest)

        assert re.match(r"^thing-[a-z0-9]{5}$", manifest["metadata"]["name"])

    def test_explicit_group_name(self, builder, base_manifest):
        manifest = builder.build(base_manifest, group_name="resizer")

        assert re.match(r"^resizer-[a-z0-9]{5}$", manifest["metadata"]["name"])
        assert manifest["metadata"]["labels"]["resque-kubernetes-group"] == "resizer"

    def test_random_suffix_alphabet(self):
        for _ in range(50):
            assert re.match(r"^[a-z0-9]{5}$", random_suffix())

    def test_rename_keeps_group(self, builder, base_manifest):
        manifest = builder.build(base_manifest)

        renamed = builder.rename(manifest)

        assert re.match(r"^thing-[a-z0-9]{5}$", renamed["metadata"]["name"])
        assert renamed["metadata"]["labels"] == manifest["metadata"]["labels"]

    def test_group_name_for_template(self, base_manifest):
        assert group_name_for(base_manifest) == "thing"


class TestNamespace:
    def test_defaults_to_default(self, builder, base_manifest):
        manifest = builder.build(base_manifest)

        assert manifest["metadata"]["namespace"] == "default"

    def test_uses_context_namespace(self, builder, base_manifest):
        manifest = builder.build(base_manifest, namespace="space")

        assert manifest["metadata"]["namespace"] == "space"

    def test_retains_manifest_namespace(self, builder, base_manifest):
        base_manifest["metadata"]["namespace"] = "staging"

        manifest = builder.build(base_manifest, namespace="space")

        assert manifest["metadata"]["namespace"] == "staging"

    def test_resolve_namespace_precedence(self):
        assert resolve_namespace({"metadata": {"namespace": "staging"}}, "space") == (
            "staging"
        )
        assert resolve_namespace({"metadata": {}}, "space") == "space"
        assert resolve_namespace({"metadata": {}}, None) == "default"
        assert resolve_namespace({"metadata": {}}, None, "workers") == "workers"


class TestPodSpecDefaults:
    def test_restart_policy_defaults_to_on_failure(self, builder, base_manifest):
        manifest = builder.build(base_manifest)

        assert manifest["spec"]["template"]["spec"]["restartPolicy"] == "OnFailure"

    def test_restart_policy_is_retained(self, builder, base_manifest):
        base_manifest["spec"]["template"]["spec"]["restartPolicy"] = "Always"

        manifest = builder.build(base_manifest)

        assert manifest["spec"]["template"]["spec"]["restartPolicy"] == "Always"

    def test_interval_is_overwritten(self, builder, base_manifest):
        base_manifest["spec"]["template"]["spec"]["containers"][0]["env"] = [
            {"name": "INTERVAL", "value": "5"}
        ]

        manifest = builder.build(base_manifest)

        env = manifest["spec"]["template"]["spec"]["containers"][0]["env"]
        assert env == [{"name": "INTERVAL", "value": "0"}]

    def test_duplicate_interval_entries_are_all_overwritten(
        self, builder, base_manifest
    ):
        base_manifest["spec"]["template"]["spec"]["containers"][0]["env"] = [
            {"name": "INTERVAL", "value": "5"},
            {"name": "QUEUE", "value": "images"},
            {"name": "INTERVAL", "value": "7"},
        ]

        manifest = builder.build(base_manifest)

        env = manifest["spec"]["template"]["spec"]["containers"][0]["env"]
        intervals = [entry for entry in env if entry["name"] == "INTERVAL"]
        assert intervals == [
            {"name": "INTERVAL", "value": "0"},
            {"name": "INTERVAL", "value": "0"},
        ]

    def test_interval_is_appended(self, builder, base_manifest):
        base_manifest["spec"]["template"]["spec"]["containers"][0]["env"] = [
            {"name": "QUEUE", "value": "images"}
        ]

        manifest = builder.build(base_manifest)

        env = manifest["spec"]["template"]["spec"]["containers"][0]["env"]
        assert {"name": "QUEUE", "value": "images"} in env
        assert {"name": "INTERVAL", "value": "0"} in env

    def test_interval_added_without_env(self, builder, base_manifest):
        manifest = builder.build(base_manifest)

        env = manifest["spec"]["template"]["spec"]["containers"][0]["env"]
        assert env == [{"name": "INTERVAL", "value": "0"}]

    def test_interval_value_from_is_replaced(self, builder, base_manifest):
        base_manifest["spec"]["template"]["spec"]["containers"][0]["env"] = [
            {
                "name": "INTERVAL",
                "valueFrom": {"configMapKeyRef": {"name": "cfg", "key": "interval"}},
            }
        ]

        manifest = builder.build(base_manifest)

        env = manifest["spec"]["template"]["spec"]["containers"][0]["env"]
        assert env == [{"name": "INTERVAL", "value": "0"}]

    def test_only_first_container_is_touched(self, builder, base_manifest):
        base_manifest["spec"]["template"]["spec"]["containers"].append(
            {"name": "sidecar"}
        )

        manifest = builder.build(base_manifest)

        assert "env" not in manifest["spec"]["template"]["spec"]["containers"][1]


class TestInputHandling:
    def test_does_not_mutate_input(self, builder, base_manifest):
        original = copy.deepcopy(base_manifest)

        builder.build(base_manifest)

        assert base_manifest == original

    def test_unknown_fields_are_preserved(self, builder, base_manifest):
        base_manifest["spec"]["backoffLimit"] = 2
        base_manifest["spec"]["template"]["spec"]["nodeSelector"] = {"pool": "batch"}

        manifest = builder.build(base_manifest)

        assert manifest["spec"]["backoffLimit"] == 2
        assert manifest["spec"]["template"]["spec"]["nodeSelector"] == {"pool": "batch"}

    def test_missing_name(self, builder, base_manifest):
        del base_manifest["metadata"]["name"]

        with pytest.raises(MalformedManifestError):
            builder.build(base_manifest)

    def test_missing_containers(self, builder, base_manifest):
        del base_manifest["spec"]["template"]["spec"]["containers"]

        with pytest.raises(MalformedManifestError):
            builder.build(base_manifest)

    def test_empty_containers(self, builder, base_manifest):
        base_manifest["spec"]["template"]["spec"]["containers"] = []

        with pytest.raises(MalformedManifestError):
            builder.build(base_manifest)

    def test_containers_not_a_list(self, builder, base_manifest):
        base_manifest["spec"]["template"]["spec"]["containers"] = {"name": "worker"}

        with pytest.raises(MalformedManifestError):
            builder.build(base_manifest)

    def test_env_not_a_list(self, builder, base_manifest):
        base_manifest["spec"]["template"]["spec"]["containers"][0]["env"] = "INTERVAL=5"

        with pytest.raises(MalformedManifestError):
            builder.build(base_manifest)
