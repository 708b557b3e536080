"""
Load Job manifest templates from disk.

Job classes can keep their worker manifests as YAML files, optionally with
Jinja2 placeholders, and return them from job_manifest().
"""

from pathlib import Path
from typing import Any, Dict, Union

import yaml
from jinja2 import Environment, FileSystemLoader, StrictUndefined
from jinja2 import TemplateError as JinjaTemplateError

from kube_launcher.core.exceptions import TemplateError
from kube_launcher.core.telemetry import get_logger

logger = get_logger(__name__)


def _parse(manifest_yaml: str, source: str) -> Dict[str, Any]:
    try:
        document = yaml.safe_load(manifest_yaml)
    except yaml.YAMLError as e:
        raise TemplateError(f"Manifest {source} is not valid YAML: {e}")

    if not isinstance(document, dict):
        raise TemplateError(f"Manifest {source} must be a YAML mapping")
    return document


def load_manifest(path: Union[str, Path]) -> Dict[str, Any]:
    """Read a plain YAML Job manifest."""
    path = Path(path)
    try:
        manifest_yaml = path.read_text()
    except OSError as e:
        raise TemplateError(f"Cannot read manifest {path}: {e}")
    return _parse(manifest_yaml, str(path))


def render_manifest(
    template_name: str, template_dir: Union[str, Path], **template_vars: Any
) -> Dict[str, Any]:
    """
    Render a Jinja2 YAML template into a manifest mapping.

    Args:
        template_name: File name inside template_dir (e.g. 'worker_job.yaml.j2')
        template_dir: Directory holding the templates
        **template_vars: Values substituted into the template

    Returns:
        Parsed manifest dict, ready to return from job_manifest()
    """
    jinja_env = Environment(
        loader=FileSystemLoader(str(template_dir)), undefined=StrictUndefined
    )
    try:
        template = jinja_env.get_template(template_name)
        manifest_yaml = template.render(**template_vars)
    except JinjaTemplateError as e:
        raise TemplateError(f"Failed to render {template_name}: {e}")

    logger.debug(f"Rendered job manifest {template_name}")
    return _parse(manifest_yaml, template_name)
