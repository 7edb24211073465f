from httpx import AsyncClient


class TestHealthEndpoint:
    async def test_health_check(self, client: AsyncClient):
        """Health reports the configured API version."""
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "version": "1.2.3"}

    async def test_health_does_not_touch_cluster(
        self, client: AsyncClient, mock_repository
    ):
        await client.get("/health")

        mock_repository.list.assert_not_called()
        mock_repository.get.assert_not_called()
