from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from kube_launcher.core.constants import DEFAULT_NAMESPACE


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="KUBE_LAUNCHER_", env_file=".env", env_file_encoding="utf-8"
    )

    # Admission
    enabled: bool = True
    max_workers: Optional[int] = 10
    allow_unlimited: bool = False  # None ceilings only mean "no limit" when set
    name_conflict_retries: int = 3

    # Cluster
    default_namespace: str = DEFAULT_NAMESPACE
    kube_context: Optional[str] = None  # kubeconfig context, None for current
    kubeconfig_path: Optional[str] = None

    # Telemetry
    log_level: str = "INFO"
    otel_service_name: str = "kube-launcher"
    otel_exporter_endpoint: Optional[str] = None  # OTLP/HTTP traces endpoint
    otel_exporter_token: Optional[str] = None


settings = Settings()
