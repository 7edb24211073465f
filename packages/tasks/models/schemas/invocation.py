"""
API schemas for task listing and invocation.
"""

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class InvokeRequest(BaseModel):
    """Request body for a task invocation."""

    kwargs: Any = Field(..., description="Payload passed to the handler as JSON")
    request_id: Optional[str] = None
    # Accepted for compatibility; every invocation is fire-and-forget
    async_mode: Optional[bool] = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class InvokeResponse(BaseModel):
    """Acknowledgement that a Job was submitted."""

    request_id: str
    job_name: str
    status: str = "accepted"
    namespace: str
    task_name: str

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TaskInfo(BaseModel):
    name: str
    namespace: str
    image: str
    handler: str


class TaskListResponse(BaseModel):
    tasks: List[TaskInfo]


class ErrorResponse(BaseModel):
    error: str
    details: Optional[str] = None


class HealthResponse(BaseModel):
    status: str
    version: str
