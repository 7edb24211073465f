"""
Kubernetes client bootstrap and error helpers.
"""

import json

from kubernetes import client, config
from kubernetes.client.rest import ApiException

from common.core.exceptions import ConfigError
from common.core.telemetry import get_logger

logger = get_logger(__name__)


def create_api_client() -> client.ApiClient:
    """Load K8s config (in-cluster or kubeconfig) and build an API client."""
    try:
        config.load_incluster_config()
        logger.info("Loaded in-cluster Kubernetes config")
    except config.ConfigException:
        try:
            config.load_kube_config()
        except (config.ConfigException, FileNotFoundError) as e:
            raise ConfigError(f"Unable to load Kubernetes config: {e}") from e
        logger.info("Loaded kubeconfig")

    return client.ApiClient()


def api_error_message(error: ApiException) -> str:
    """Message from the API server's Status body, falling back to the reason."""
    if error.body:
        try:
            body = json.loads(error.body)
        except (TypeError, ValueError):
            return str(error.body)
        if isinstance(body, dict) and body.get("message"):
            return body["message"]
    return f"{error.status} {error.reason}"
