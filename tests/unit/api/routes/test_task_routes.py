from httpx import AsyncClient
from kubernetes.client.rest import ApiException

from common.core.exceptions import OrchestratorError, TaskNotFound


class TestListTasks:
    async def test_list_empty(self, client: AsyncClient, mock_repository):
        mock_repository.list.return_value = []

        response = await client.get("/tasks")

        assert response.status_code == 200
        assert response.json() == {"tasks": []}

    async def test_list_tasks(self, client: AsyncClient, mock_repository, task_factory):
        mock_repository.list.return_value = [
            task_factory(name="echo", namespace="ns1", handler="h"),
        ]

        response = await client.get("/tasks")

        assert response.status_code == 200
        assert response.json() == {
            "tasks": [
                {"name": "echo", "namespace": "ns1", "image": "busybox", "handler": "h"}
            ]
        }

    async def test_list_orchestrator_error(self, client: AsyncClient, mock_repository):
        mock_repository.list.side_effect = OrchestratorError("tasks is forbidden")

        response = await client.get("/tasks")

        assert response.status_code == 500
        assert response.json() == {
            "error": "tasks is forbidden",
            "details": "Kubernetes error: tasks is forbidden",
        }


class TestGetTask:
    async def test_get_task(self, client: AsyncClient, mock_repository, task_factory):
        mock_repository.get.return_value = task_factory(
            name="echo", namespace="ns1", timeout=60
        )

        response = await client.get("/tasks/ns1/echo")

        assert response.status_code == 200
        data = response.json()
        assert data["kind"] == "Task"
        assert data["metadata"]["name"] == "echo"
        assert data["spec"]["image"] == "busybox"
        assert data["spec"]["timeout"] == 60
        assert data["spec"]["imagePullPolicy"] == "IfNotPresent"
        mock_repository.get.assert_called_once_with("ns1", "echo")

    async def test_get_missing_task(self, client: AsyncClient, mock_repository):
        mock_repository.get.side_effect = TaskNotFound("nope")

        response = await client.get("/tasks/ns1/nope")

        assert response.status_code == 404
        assert response.json() == {"error": "nope", "details": "Task not found: nope"}


class TestInvokeTask:
    async def test_invoke(
        self, client: AsyncClient, mock_repository, mock_batch_v1, task_factory
    ):
        mock_repository.get.return_value = task_factory(
            name="echo", namespace="ns1", handler="h", timeout=60
        )

        response = await client.post(
            "/tasks/ns1/echo/invoke",
            json={"kwargs": {"x": 1}, "requestId": "req-1", "asyncMode": True},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["requestId"] == "req-1"
        assert data["jobName"].startswith("echo-")
        assert data["status"] == "accepted"
        assert data["namespace"] == "ns1"
        assert data["taskName"] == "echo"
        mock_batch_v1.create_namespaced_job.assert_called_once()

    async def test_invoke_generates_request_id(
        self, client: AsyncClient, mock_repository, task_factory
    ):
        mock_repository.get.return_value = task_factory()

        response = await client.post("/tasks/ns1/echo/invoke", json={"kwargs": {}})

        assert response.status_code == 200
        assert response.json()["requestId"]

    async def test_invoke_without_kwargs(
        self, client: AsyncClient, mock_repository, mock_batch_v1
    ):
        response = await client.post("/tasks/ns1/echo/invoke", json={})

        assert response.status_code == 400
        assert response.json()["error"] == "body.kwargs: Field required"
        mock_repository.get.assert_not_called()
        mock_batch_v1.create_namespaced_job.assert_not_called()

    async def test_invoke_unencodable_kwargs(
        self, client: AsyncClient, mock_repository, mock_batch_v1, task_factory
    ):
        mock_repository.get.return_value = task_factory()

        response = await client.post(
            "/tasks/ns1/echo/invoke",
            content=b'{"kwargs": {"x": NaN}}',
            headers={"content-type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["details"].startswith("Serialization error: ")
        mock_batch_v1.create_namespaced_job.assert_not_called()

    async def test_invoke_missing_task(
        self, client: AsyncClient, mock_repository, mock_batch_v1
    ):
        mock_repository.get.side_effect = TaskNotFound("nope")

        response = await client.post("/tasks/ns1/nope/invoke", json={"kwargs": {}})

        assert response.status_code == 404
        assert response.json()["error"] == "nope"
        mock_batch_v1.create_namespaced_job.assert_not_called()

    async def test_invoke_malformed_body(self, client: AsyncClient, mock_repository):
        response = await client.post(
            "/tasks/ns1/echo/invoke",
            content=b"{not json",
            headers={"content-type": "application/json"},
        )

        assert response.status_code == 400
        data = response.json()
        assert data["details"].startswith("Invalid request: ")
        mock_repository.get.assert_not_called()

    async def test_invoke_wrong_field_type(self, client: AsyncClient, mock_repository):
        response = await client.post(
            "/tasks/ns1/echo/invoke", json={"kwargs": {}, "requestId": ["a"]}
        )

        assert response.status_code == 400
        assert "requestId" in response.json()["error"]

    async def test_invoke_job_rejected(
        self, client: AsyncClient, mock_repository, mock_batch_v1, task_factory
    ):
        mock_repository.get.return_value = task_factory()
        error = ApiException(status=409, reason="Conflict")
        error.body = '{"message": "jobs.batch \\"echo-1\\" already exists"}'
        mock_batch_v1.create_namespaced_job.side_effect = error

        response = await client.post("/tasks/ns1/echo/invoke", json={"kwargs": {}})

        assert response.status_code == 500
        assert response.json()["error"] == 'jobs.batch "echo-1" already exists'

    async def test_invoke_default_namespace(
        self, client: AsyncClient, mock_repository, mock_batch_v1, task_factory
    ):
        mock_repository.get.return_value = task_factory(namespace="default")

        response = await client.post("/invoke/echo", json={"kwargs": {"a": "b"}})

        assert response.status_code == 200
        assert response.json()["namespace"] == "default"
        assert response.json()["taskName"] == "echo"
        mock_repository.get.assert_called_once_with("default", "echo")
        call_kwargs = mock_batch_v1.create_namespaced_job.call_args[1]
        assert call_kwargs["namespace"] == "default"
