from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Tuple

from kubernetes import client, watch
from kubernetes.client.rest import ApiException
from pydantic import ValidationError

from common.core.constants import WatchEventType
from common.core.exceptions import OrchestratorError, TaskNotFound
from common.core.telemetry import get_logger, trace_span
from common.execution.kube import api_error_message
from packages.tasks.models.domain.task import Task

logger = get_logger(__name__)


@dataclass(frozen=True)
class TaskEvent:
    """A watch event carrying a parsed Task."""

    type: WatchEventType
    task: Task


class TaskRepository:
    """Read access to Task custom resources through the Kubernetes API."""

    def __init__(
        self,
        api_client: Optional[client.ApiClient] = None,
        group: str = "lambda.example.com",
        version: str = "v1",
        plural: str = "tasks",
    ):
        self.custom_api = client.CustomObjectsApi(api_client)
        self.group = group
        self.version = version
        self.plural = plural

    def _parse(self, obj: Dict[str, Any]) -> Task:
        try:
            return Task.model_validate(obj)
        except ValidationError as e:
            name = obj.get("metadata", {}).get("name", "<unknown>")
            raise OrchestratorError(f"Invalid Task object {name}: {e}") from e

    def _parse_items(self, items: List[Dict[str, Any]]) -> List[Task]:
        tasks = []
        for obj in items:
            try:
                tasks.append(self._parse(obj))
            except OrchestratorError as e:
                logger.warning(f"Skipping task: {e}")
        return tasks

    @trace_span
    def get(self, namespace: str, name: str) -> Task:
        """Get a task by namespace and name."""
        try:
            obj = self.custom_api.get_namespaced_custom_object(
                group=self.group,
                version=self.version,
                namespace=namespace,
                plural=self.plural,
                name=name,
            )
        except ApiException as e:
            if e.status == 404:
                raise TaskNotFound(name) from e
            raise OrchestratorError(api_error_message(e), status=e.status) from e
        return self._parse(obj)

    @trace_span
    def list(self, namespace: Optional[str] = None) -> List[Task]:
        """List tasks in one namespace, or across all namespaces."""
        tasks, _ = self.list_with_version(namespace)
        return tasks

    def list_with_version(
        self, namespace: Optional[str] = None
    ) -> Tuple[List[Task], Optional[str]]:
        """List tasks along with the list's resourceVersion for a follow-up watch."""
        try:
            if namespace:
                result = self.custom_api.list_namespaced_custom_object(
                    group=self.group,
                    version=self.version,
                    namespace=namespace,
                    plural=self.plural,
                )
            else:
                result = self.custom_api.list_cluster_custom_object(
                    group=self.group, version=self.version, plural=self.plural
                )
        except ApiException as e:
            raise OrchestratorError(api_error_message(e), status=e.status) from e

        resource_version = result.get("metadata", {}).get("resourceVersion")
        return self._parse_items(result.get("items", [])), resource_version

    def watch(
        self,
        resource_version: Optional[str] = None,
        timeout_seconds: Optional[int] = None,
    ) -> Iterator[TaskEvent]:
        """
        Stream Task change events across all namespaces.

        The stream ends when the server closes it after ``timeout_seconds``.
        An expired ``resource_version`` surfaces as ApiException with status 410.
        """
        kwargs: Dict[str, Any] = {}
        if resource_version:
            kwargs["resource_version"] = resource_version
        if timeout_seconds:
            kwargs["timeout_seconds"] = timeout_seconds

        stream = watch.Watch().stream(
            self.custom_api.list_cluster_custom_object,
            self.group,
            self.version,
            self.plural,
            **kwargs,
        )
        for event in stream:
            event_type = WatchEventType(event["type"])
            if event_type not in (
                WatchEventType.ADDED,
                WatchEventType.MODIFIED,
                WatchEventType.DELETED,
            ):
                continue
            try:
                task = self._parse(event["object"])
            except OrchestratorError as e:
                logger.warning(f"Ignoring {event_type.value} event: {e}")
                continue
            yield TaskEvent(type=event_type, task=task)
