"""
Operator context.

The Kubernetes client, settings and the components built on them are
constructed once at startup and passed to the HTTP app and the controller.
"""

from dataclasses import dataclass
from typing import Optional

from kubernetes import client

from common.core.config import Settings
from common.execution.executors.base import JobExecutor
from common.execution.executors.k8s import K8sJobExecutor
from common.execution.kube import create_api_client
from packages.tasks.repositories.task_repository import TaskRepository
from packages.tasks.services.invocation_service import InvocationService


@dataclass
class OperatorContext:
    settings: Settings
    repository: TaskRepository
    executor: JobExecutor

    @property
    def invocation_service(self) -> InvocationService:
        return InvocationService(
            repository=self.repository,
            executor=self.executor,
            default_namespace=self.settings.default_namespace,
        )


def build_context(
    settings: Settings, api_client: Optional[client.ApiClient] = None
) -> OperatorContext:
    """Connect to the cluster and wire up the operator components."""
    api_client = api_client or create_api_client()
    repository = TaskRepository(
        api_client,
        group=settings.task_group,
        version=settings.task_version,
        plural=settings.task_plural,
    )
    return OperatorContext(
        settings=settings,
        repository=repository,
        executor=K8sJobExecutor(api_client),
    )
