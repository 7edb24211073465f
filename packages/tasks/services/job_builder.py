"""
Job builder.

Turns a Task and an invocation request into the JobSpec for one execution.
Job names are ``<task>-<unix seconds>``, so two invocations of the same task
within one second produce the same name and the second create is rejected by
the API server.
"""

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, List, Optional
from uuid import uuid4

from common.core.constants import (
    ENV_HANDLER,
    ENV_KWARGS,
    ENV_REQUEST_ID,
    ENV_TASK_NAME,
    LABEL_APP,
    LABEL_APP_VALUE,
    LABEL_REQUEST_ID,
    LABEL_TASK,
)
from common.core.exceptions import SerializationError
from common.execution.job_spec import EnvVar, JobSpec
from packages.tasks.models.domain.task import Task
from packages.tasks.models.schemas.invocation import InvokeRequest
from packages.tasks.services.resource_mapper import map_resources


@dataclass(frozen=True)
class BuiltJob:
    request_id: str
    job_spec: JobSpec

    @property
    def job_name(self) -> str:
        return self.job_spec.job_name


def resolve_request_id(request: InvokeRequest) -> str:
    if request.request_id is not None:
        return request.request_id
    return str(uuid4())


def job_name_for(task_name: str, now: datetime) -> str:
    return f"{task_name}-{int(now.timestamp())}"


def encode_kwargs(kwargs: Any) -> str:
    """Serialize the invocation payload to compact JSON."""
    try:
        return json.dumps(kwargs, separators=(",", ":"), allow_nan=False)
    except (TypeError, ValueError) as e:
        raise SerializationError(str(e)) from e


def build_env(task: Task, request_id: str, kwargs_json: str) -> List[EnvVar]:
    env_vars = [
        EnvVar(name=ENV_HANDLER, value=task.spec.handler),
        EnvVar(name=ENV_TASK_NAME, value=task.name),
        EnvVar(name=ENV_REQUEST_ID, value=request_id),
        EnvVar(name=ENV_KWARGS, value=kwargs_json),
    ]
    # Task env follows in declaration order; duplicates are left to Kubernetes
    env_vars.extend(EnvVar(name=e.name, value=e.value) for e in task.spec.env)
    return env_vars


def build_job(
    task: Task,
    request: InvokeRequest,
    namespace: str,
    now: Optional[datetime] = None,
) -> BuiltJob:
    """Build the JobSpec for one invocation of ``task``."""
    now = now or datetime.now(timezone.utc)
    request_id = resolve_request_id(request)
    kwargs_json = encode_kwargs(request.kwargs)

    labels = {
        LABEL_APP: LABEL_APP_VALUE,
        LABEL_TASK: task.name,
        LABEL_REQUEST_ID: request_id,
    }

    job_spec = JobSpec(
        job_name=job_name_for(task.name, now),
        namespace=namespace,
        labels=labels,
        image=task.spec.image,
        image_pull_policy=task.spec.image_pull_policy,
        env_vars=build_env(task, request_id, kwargs_json),
        resources=map_resources(task.spec.resources),
        active_deadline_seconds=task.spec.timeout_seconds,
    )
    return BuiltJob(request_id=request_id, job_spec=job_spec)
