"""
Integration tests for service endpoints and storage serving.
"""
from copymode.services.storage_service import storage_service, KNOWLEDGE_BUCKET


class TestServiceEndpoints:

    async def test_root(self, client):
        response = await client.get("/")

        assert response.status_code == 200
        assert response.json() == {"name": "Copy Mode", "version": "1.0.0", "status": "running"}

    async def test_health(self, client):
        response = await client.get("/health")

        assert response.json() == {"status": "healthy"}

    async def test_stored_objects_are_served(self, client):
        path = storage_service.upload(KNOWLEDGE_BUCKET, "agent-x/file.txt", b"stored bytes")

        response = await client.get(storage_service.public_url(KNOWLEDGE_BUCKET, path))

        assert response.status_code == 200
        assert response.content == b"stored bytes"

    async def test_missing_object(self, client):
        response = await client.get("/storage/agent.files/nope/missing.txt")

        assert response.status_code == 404
