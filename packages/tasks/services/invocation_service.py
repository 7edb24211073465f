from typing import List

from common.core.telemetry import get_logger, log_span_event, trace_span
from common.execution.executors.base import JobExecutor
from packages.tasks.models.domain.task import Task
from packages.tasks.models.schemas.invocation import (
    InvokeRequest,
    InvokeResponse,
    TaskInfo,
)
from packages.tasks.repositories.task_repository import TaskRepository
from packages.tasks.services.job_builder import build_job

logger = get_logger(__name__)


class InvocationService:
    """Service for invoking tasks.

    This service handles:
    - Resolving Task definitions
    - Building and submitting one Job per invocation
    - Read-only task listing

    Submission is fire-and-forget: the response only acknowledges that the
    Job was created. Nothing is retried.
    """

    def __init__(
        self,
        repository: TaskRepository,
        executor: JobExecutor,
        default_namespace: str = "default",
    ):
        self.repository = repository
        self.executor = executor
        self.default_namespace = default_namespace

    @trace_span
    def invoke(
        self, namespace: str, task_name: str, request: InvokeRequest
    ) -> InvokeResponse:
        """Submit a Job for ``task_name`` and return without waiting for it."""
        logger.info(f"Invoking task: {task_name} in namespace: {namespace}")

        task = self.repository.get(namespace, task_name)

        built = build_job(task, request, namespace)
        logger.info(f"Creating job: {built.job_name} for task: {task.name}")
        job_name = self.executor.submit(built.job_spec)
        log_span_event(
            f"Job submitted: {job_name}",
            {"task.name": task_name, "request.id": built.request_id},
        )

        return InvokeResponse(
            request_id=built.request_id,
            job_name=job_name,
            namespace=namespace,
            task_name=task_name,
        )

    def invoke_default(self, task_name: str, request: InvokeRequest) -> InvokeResponse:
        """Invoke a task in the configured default namespace."""
        return self.invoke(self.default_namespace, task_name, request)

    @trace_span
    def list_tasks(self) -> List[TaskInfo]:
        """Summaries of every task across all namespaces."""
        return [
            TaskInfo(
                name=task.name,
                namespace=task.namespace,
                image=task.spec.image,
                handler=task.spec.handler,
            )
            for task in self.repository.list()
        ]

    @trace_span
    def get_task(self, namespace: str, name: str) -> Task:
        return self.repository.get(namespace, name)
