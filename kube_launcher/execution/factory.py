from typing import Any, Optional

from pydantic import BaseModel, ConfigDict

from kube_launcher.core.config import Settings, settings
from kube_launcher.core.constants import DEFAULT_NAMESPACE
from kube_launcher.core.telemetry import get_logger

logger = get_logger(__name__)


class AdmissionConfig(BaseModel):
    """Explicit admission settings handed to a JobsManager."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    enabled: bool = True
    max_workers: Optional[int] = None
    allow_unlimited: bool = False
    name_conflict_retries: int = 3
    default_namespace: str = DEFAULT_NAMESPACE
    api_client: Optional[Any] = None  # pre-built kubernetes.client.ApiClient

    @classmethod
    def from_settings(cls, source: Optional[Settings] = None) -> "AdmissionConfig":
        source = source or settings
        return cls(
            enabled=source.enabled,
            max_workers=source.max_workers,
            allow_unlimited=source.allow_unlimited,
            name_conflict_retries=source.name_conflict_retries,
            default_namespace=source.default_namespace,
        )


# Global instance
_admission_config: Optional[AdmissionConfig] = None


def get_admission_config() -> AdmissionConfig:
    """
    Get the process-wide admission config.

    Returns:
        AdmissionConfig: Built from environment settings on first use
    """
    global _admission_config

    if _admission_config is None:
        _admission_config = AdmissionConfig.from_settings()
        logger.info(
            f"Initialized admission config (enabled={_admission_config.enabled}, "
            f"max_workers={_admission_config.max_workers})"
        )

    return _admission_config


def configure(**overrides: Any) -> AdmissionConfig:
    """
    Override process-wide admission settings before any hook fires.

    Example:
        configure(enabled=True, max_workers=5, api_client=my_api_client)
    """
    global _admission_config

    unknown = set(overrides) - set(AdmissionConfig.model_fields)
    if unknown:
        raise TypeError(f"Unknown admission settings: {', '.join(sorted(unknown))}")

    current = get_admission_config()
    _admission_config = AdmissionConfig.model_validate({**dict(current), **overrides})
    return _admission_config


def reset_admission_config() -> None:
    """Drop overrides so the next lookup re-reads settings."""
    global _admission_config
    _admission_config = None
