# Shared pytest configuration and fixtures for all test types
import pytest

from kube_launcher.execution.factory import reset_admission_config


@pytest.fixture(autouse=True)
def clean_admission_config():
    """Each test starts from settings-derived admission config."""
    reset_admission_config()
    yield
    reset_admission_config()
