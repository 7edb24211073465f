from typing import Annotated, Any, Dict

from fastapi import APIRouter, Depends, Path, Request

from common.core.telemetry import get_logger, trace_span
from packages.tasks.models.schemas.invocation import (
    InvokeRequest,
    InvokeResponse,
    TaskListResponse,
)
from packages.tasks.services.invocation_service import InvocationService

router = APIRouter()
logger = get_logger(__name__)


def get_invocation_service(request: Request) -> InvocationService:
    return request.app.state.context.invocation_service


@router.get("/tasks", response_model=TaskListResponse)
@trace_span
def list_tasks(
    invocation_service: InvocationService = Depends(get_invocation_service),
):
    """List tasks across all namespaces."""
    return TaskListResponse(tasks=invocation_service.list_tasks())


@router.get("/tasks/{namespace}/{taskName}")
@trace_span
def get_task(
    namespace: str,
    task_name: Annotated[str, Path(alias="taskName")],
    invocation_service: InvocationService = Depends(get_invocation_service),
) -> Dict[str, Any]:
    """Get the full Task object."""
    task = invocation_service.get_task(namespace, task_name)
    return task.to_api_dict()


@router.post(
    "/tasks/{namespace}/{taskName}/invoke",
    response_model=InvokeResponse,
    response_model_by_alias=True,
)
@trace_span
def invoke_task(
    namespace: str,
    task_name: Annotated[str, Path(alias="taskName")],
    request: InvokeRequest,
    invocation_service: InvocationService = Depends(get_invocation_service),
):
    """Invoke a task; returns once the Job is created."""
    return invocation_service.invoke(namespace, task_name, request)


@router.post(
    "/invoke/{taskName}",
    response_model=InvokeResponse,
    response_model_by_alias=True,
)
@trace_span
def invoke_task_default_namespace(
    task_name: Annotated[str, Path(alias="taskName")],
    request: InvokeRequest,
    invocation_service: InvocationService = Depends(get_invocation_service),
):
    """Invoke a task in the default namespace."""
    return invocation_service.invoke_default(task_name, request)
