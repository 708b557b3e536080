"""
Cluster connection discovery.

Resolves where the control plane lives and which namespace the current
identity defaults to, trying the in-cluster service account first and
falling back to kubeconfig.
"""

import os
from typing import Optional, Tuple

from kubernetes import client, config
from pydantic import BaseModel

from kube_launcher.core.config import settings
from kube_launcher.core.constants import SERVICE_ACCOUNT_DIR, ContextSource
from kube_launcher.core.exceptions import TransportError
from kube_launcher.core.telemetry import get_logger

logger = get_logger(__name__)


class ClusterContext(BaseModel):
    """Endpoint and default namespace of the ambient cluster identity."""

    endpoint: str
    namespace: Optional[str] = None
    source: ContextSource


class ContextFactory:
    """Discover cluster credentials from the execution environment."""

    def __init__(
        self,
        kube_context: Optional[str] = None,
        kubeconfig_path: Optional[str] = None,
        service_account_dir: str = SERVICE_ACCOUNT_DIR,
    ):
        self.kube_context = kube_context or settings.kube_context
        self.kubeconfig_path = kubeconfig_path or settings.kubeconfig_path
        self.service_account_dir = service_account_dir

    def context(self) -> Optional[ClusterContext]:
        """Return the ambient context, or None when no credentials are found."""
        try:
            cluster_context, _ = self._load()
        except TransportError as e:
            logger.debug(f"No cluster context available: {e}")
            return None
        return cluster_context

    def api_client(self) -> client.ApiClient:
        """Build an ApiClient from ambient credentials."""
        _, configuration = self._load()
        return client.ApiClient(configuration)

    def _load(self) -> Tuple[ClusterContext, client.Configuration]:
        try:
            return self._load_incluster()
        except config.ConfigException as e:
            logger.debug(f"In-cluster config unavailable: {e}")

        try:
            return self._load_kubeconfig()
        except (config.ConfigException, OSError) as e:
            raise TransportError(f"No Kubernetes cluster configured: {e}")

    def _load_incluster(self) -> Tuple[ClusterContext, client.Configuration]:
        configuration = client.Configuration()
        config.load_incluster_config(client_configuration=configuration)
        cluster_context = ClusterContext(
            endpoint=configuration.host,
            namespace=self._service_account_namespace(),
            source=ContextSource.IN_CLUSTER,
        )
        logger.info("Using in-cluster Kubernetes configuration")
        return cluster_context, configuration

    def _load_kubeconfig(self) -> Tuple[ClusterContext, client.Configuration]:
        configuration = client.Configuration()
        config.load_kube_config(
            config_file=self.kubeconfig_path,
            context=self.kube_context,
            client_configuration=configuration,
        )
        contexts, active_context = config.list_kube_config_contexts(
            config_file=self.kubeconfig_path
        )
        selected = active_context
        if self.kube_context:
            selected = next(
                (c for c in contexts if c.get("name") == self.kube_context),
                active_context,
            )
        namespace = ((selected or {}).get("context") or {}).get("namespace")
        cluster_context = ClusterContext(
            endpoint=configuration.host,
            namespace=namespace,
            source=ContextSource.KUBECONFIG,
        )
        logger.info(f"Using kubeconfig context {(selected or {}).get('name')}")
        return cluster_context, configuration

    def _service_account_namespace(self) -> Optional[str]:
        path = os.path.join(self.service_account_dir, "namespace")
        try:
            with open(path) as f:
                return f.read().strip() or None
        except OSError:
            return None
