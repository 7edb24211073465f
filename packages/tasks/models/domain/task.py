"""
Task custom resource model.

Mirrors the ``lambda.example.com/v1`` ``Task`` object as stored by the
Kubernetes API server. Field names are camelCase on the wire.
"""

from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from common.core.constants import (
    DEFAULT_HANDLER,
    DEFAULT_IMAGE_PULL_POLICY,
    DEFAULT_TIMEOUT_SECONDS,
)

TASK_KIND = "Task"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ResourceList(CamelModel):
    """CPU / memory quantities, passed through to Kubernetes unparsed."""

    cpu: Optional[str] = None
    memory: Optional[str] = None

    def is_empty(self) -> bool:
        return self.cpu is None and self.memory is None


class TaskResources(CamelModel):
    limits: ResourceList = Field(default_factory=ResourceList)
    requests: ResourceList = Field(default_factory=ResourceList)


class TaskEnvVar(CamelModel):
    name: str
    value: str


class TaskSpec(CamelModel):
    """Declarative definition of an invokable container."""

    image: str = Field(..., min_length=1, description="Container image to run")
    image_pull_policy: str = Field(
        default=DEFAULT_IMAGE_PULL_POLICY, description="Image pull policy"
    )
    resources: TaskResources = Field(
        default_factory=TaskResources, description="Resource requirements"
    )
    env: List[TaskEnvVar] = Field(
        default_factory=list,
        description="Environment variables to pass to the container",
    )
    handler: str = Field(
        default=DEFAULT_HANDLER,
        description="Handler name passed to the container",
    )
    timeout_seconds: int = Field(
        default=DEFAULT_TIMEOUT_SECONDS,
        gt=0,
        validation_alias=AliasChoices("timeout", "timeoutSeconds", "timeout_seconds"),
        serialization_alias="timeout",
        description="Timeout in seconds",
    )


class TaskStatus(CamelModel):
    executions: int = 0
    last_execution: Optional[str] = None


class ObjectMeta(BaseModel):
    """Subset of Kubernetes ObjectMeta; unknown fields are kept verbatim."""

    name: str
    namespace: Optional[str] = None

    model_config = ConfigDict(extra="allow")


class Task(CamelModel):
    api_version: str = "lambda.example.com/v1"
    kind: str = TASK_KIND
    metadata: ObjectMeta
    spec: TaskSpec
    status: Optional[TaskStatus] = None

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def namespace(self) -> str:
        return self.metadata.namespace or ""

    @property
    def resource_version(self) -> Optional[str]:
        return (self.metadata.model_extra or {}).get("resourceVersion")

    def to_api_dict(self) -> Dict[str, Any]:
        """Serialize with the Kubernetes wire names, dropping unset optionals."""
        return self.model_dump(by_alias=True, exclude_none=True)
