# Shared pytest configuration and fixtures
from unittest.mock import MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from api.main import create_app
from common.core.config import Settings
from common.core.context import OperatorContext
from common.execution.executors.k8s import K8sJobExecutor
from packages.tasks.models.domain.task import Task
from packages.tasks.repositories.task_repository import TaskRepository


def make_task(
    name: str = "echo",
    namespace: str = "ns1",
    image: str = "busybox",
    **spec,
) -> Task:
    """Build a Task the way the API server would return it."""
    return Task.model_validate(
        {
            "apiVersion": "lambda.example.com/v1",
            "kind": "Task",
            "metadata": {
                "name": name,
                "namespace": namespace,
                "resourceVersion": "1",
            },
            "spec": {"image": image, **spec},
        }
    )


@pytest.fixture
def settings():
    """Settings isolated from the developer's environment and .env file."""
    return Settings(
        _env_file=None, NAMESPACE="default", api_version="1.2.3", environment="local"
    )


@pytest.fixture
def mock_repository():
    """Mock Task repository (external K8s service)."""
    repository = MagicMock(spec=TaskRepository)
    repository.list.return_value = []
    return repository


@pytest.fixture
def mock_batch_v1():
    """Mock BatchV1Api (external K8s service)."""
    return MagicMock()


@pytest.fixture
def executor(mock_batch_v1):
    """Real executor and template rendering with a mocked BatchV1Api."""
    executor = K8sJobExecutor()
    executor.batch_v1 = mock_batch_v1
    return executor


@pytest.fixture
def context(settings, mock_repository, executor):
    return OperatorContext(
        settings=settings, repository=mock_repository, executor=executor
    )


@pytest_asyncio.fixture
async def client(context):
    """Create a test client."""
    app = create_app(context)
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac


def submitted_manifest(mock_batch_v1) -> dict:
    """Body passed to the last create_namespaced_job call."""
    return mock_batch_v1.create_namespaced_job.call_args[1]["body"]


@pytest.fixture
def task_factory():
    return make_task


@pytest.fixture
def manifest_of():
    return submitted_manifest
