"""
Kubernetes executor for task job execution.

Creates K8s Jobs using:
- Kubernetes Python client for API interactions
- Jinja2 templates for Job manifests
"""

import os
from typing import Any, Dict, Optional

import yaml
from jinja2 import Environment, FileSystemLoader, StrictUndefined
from kubernetes import client
from kubernetes.client.rest import ApiException

from common.core.exceptions import OrchestratorError
from common.core.telemetry import get_logger
from common.execution.executors.base import JobExecutor
from common.execution.job_spec import JobSpec
from common.execution.kube import api_error_message

logger = get_logger(__name__)

TEMPLATE_DIR = os.path.join(
    os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "job_templates"
)


def create_template_environment(template_dir: str = TEMPLATE_DIR) -> Environment:
    """Jinja2 environment for Job manifest templates."""
    return Environment(
        loader=FileSystemLoader(template_dir),
        undefined=StrictUndefined,
        keep_trailing_newline=True,
    )


def _join_surrogates(value: Any) -> Any:
    """Recombine surrogate pairs that YAML decodes from separate \\u escapes."""
    if isinstance(value, str):
        return value.encode("utf-16-le", "surrogatepass").decode(
            "utf-16-le", "surrogatepass"
        )
    if isinstance(value, dict):
        return {_join_surrogates(k): _join_surrogates(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_join_surrogates(item) for item in value]
    return value


def render_job_manifest(
    job_spec: JobSpec, jinja_env: Optional[Environment] = None
) -> Dict[str, Any]:
    """Render the Job manifest for a job spec and parse it into a dict."""
    jinja_env = jinja_env or create_template_environment()

    template_context = {
        **job_spec.template_vars,
        **job_spec.model_dump(exclude={"template_vars", "template_name"}),
    }

    template = jinja_env.get_template(job_spec.template_name)
    manifest_yaml = template.render(**template_context)
    logger.debug(f"Rendered Job YAML:\n{manifest_yaml}")

    # tojson escapes characters outside the BMP as surrogate pairs
    return _join_surrogates(yaml.safe_load(manifest_yaml))


class K8sJobExecutor(JobExecutor):
    """Executor for Kubernetes-based job execution."""

    def __init__(
        self,
        api_client: Optional[client.ApiClient] = None,
        jinja_env: Optional[Environment] = None,
    ):
        self.batch_v1 = client.BatchV1Api(api_client)
        self.jinja_env = jinja_env or create_template_environment()

    def submit(self, job_spec: JobSpec) -> str:
        """Create a Kubernetes Job based on job spec."""
        job_dict = render_job_manifest(job_spec, self.jinja_env)

        try:
            # Create job directly from dict (K8s Python client accepts dicts)
            self.batch_v1.create_namespaced_job(
                namespace=job_spec.namespace, body=job_dict
            )
        except ApiException as e:
            raise OrchestratorError(api_error_message(e), status=e.status) from e

        logger.info(f"Job created successfully: {job_spec.job_name}")
        return job_spec.job_name
