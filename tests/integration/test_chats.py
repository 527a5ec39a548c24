"""
Integration tests for chats, messages and copy generation.
"""
from unittest.mock import AsyncMock

import pytest
from sqlalchemy import select

from copymode.core.exceptions import UpstreamAPIError
from copymode.models import Message
from copymode.services.copy_service import copy_service
from tests.conftest import API


@pytest.fixture
async def chat_id(client, user_headers, agent, expert, content_type):
    response = await client.post(
        f"{API}/chats",
        json={"agent_id": agent.id, "expert_id": expert.id, "content_type_id": content_type.id},
        headers=user_headers
    )
    assert response.status_code == 200
    return response.json()["id"]


@pytest.fixture
def mock_generation(monkeypatch):
    """Retrieval returns nothing and Groq answers with fixed copy."""
    search = AsyncMock(return_value=[])
    complete = AsyncMock(return_value="Fresh copy")
    monkeypatch.setattr(copy_service.vectors, "search_similar", search)
    monkeypatch.setattr(copy_service.llm, "complete", complete)
    return complete


class TestChatCrud:

    async def test_create_builds_default_title(self, client, chat_id, user_headers):
        response = await client.get(f"{API}/chats/{chat_id}", headers=user_headers)

        data = response.json()
        assert data["title"] == "Direct Response - Instagram Post"
        assert data["content_type"] == "Instagram Post"
        assert data["messages"] == []

    async def test_create_with_title_and_free_text_content_type(self, client, user_headers, agent):
        response = await client.post(
            f"{API}/chats",
            json={"agent_id": agent.id, "content_type": "Tweet", "title": "Launch"},
            headers=user_headers
        )

        assert response.json()["title"] == "Launch"
        assert response.json()["content_type"] == "Tweet"
        assert response.json()["content_type_id"] is None

    async def test_create_with_unknown_agent(self, client, user_headers):
        response = await client.post(f"{API}/chats", json={"agent_id": "missing"}, headers=user_headers)

        assert response.status_code == 404

    async def test_create_with_other_users_expert(self, client, other_headers, agent, expert):
        response = await client.post(
            f"{API}/chats", json={"agent_id": agent.id, "expert_id": expert.id}, headers=other_headers
        )

        assert response.status_code == 404

    async def test_list_most_recent_first(self, client, user_headers, agent):
        first = await client.post(f"{API}/chats", json={"agent_id": agent.id, "title": "First"}, headers=user_headers)
        await client.post(f"{API}/chats", json={"agent_id": agent.id, "title": "Second"}, headers=user_headers)
        await client.post(
            f"{API}/chats/{first.json()['id']}/messages",
            json={"content": "bump", "role": "user"},
            headers=user_headers
        )

        response = await client.get(f"{API}/chats", headers=user_headers)

        assert [c["title"] for c in response.json()] == ["First", "Second"]
        assert response.json()[0]["messages"][0]["content"] == "bump"

    async def test_chats_are_private(self, client, chat_id, other_headers):
        assert (await client.get(f"{API}/chats", headers=other_headers)).json() == []
        assert (await client.get(f"{API}/chats/{chat_id}", headers=other_headers)).status_code == 404

    async def test_delete_chat_removes_messages(self, client, db_session, chat_id, user_headers):
        await client.post(
            f"{API}/chats/{chat_id}/messages", json={"content": "hello", "role": "user"}, headers=user_headers
        )

        response = await client.delete(f"{API}/chats/{chat_id}", headers=user_headers)

        assert response.status_code == 200
        remaining = await db_session.execute(select(Message).where(Message.chat_id == chat_id))
        assert remaining.scalars().all() == []

    async def test_add_and_delete_message(self, client, chat_id, user_headers):
        added = await client.post(
            f"{API}/chats/{chat_id}/messages",
            json={"content": "Draft", "role": "assistant"},
            headers=user_headers
        )
        assert added.status_code == 200
        message_id = added.json()["id"]

        deleted = await client.delete(f"{API}/chats/{chat_id}/messages/{message_id}", headers=user_headers)
        assert deleted.status_code == 200

        chat = await client.get(f"{API}/chats/{chat_id}", headers=user_headers)
        assert chat.json()["messages"] == []

    async def test_invalid_message_role(self, client, chat_id, user_headers):
        response = await client.post(
            f"{API}/chats/{chat_id}/messages", json={"content": "x", "role": "system"}, headers=user_headers
        )

        assert response.status_code == 400

    async def test_delete_missing_message(self, client, chat_id, user_headers):
        response = await client.delete(f"{API}/chats/{chat_id}/messages/missing", headers=user_headers)

        assert response.status_code == 404


class TestGenerate:

    async def test_generate_stores_both_messages(
        self, client, db_session, regular_user, chat_id, user_headers, mock_generation
    ):
        regular_user.api_key = "gsk-user"
        await db_session.commit()

        response = await client.post(
            f"{API}/chats/{chat_id}/generate", json={"message": "Launch post"}, headers=user_headers
        )

        assert response.status_code == 200
        data = response.json()
        assert data["message"]["content"] == "Launch post"
        assert data["message"]["role"] == "user"
        assert data["reply"]["content"] == "Fresh copy"
        assert data["reply"]["role"] == "assistant"

        chat = await client.get(f"{API}/chats/{chat_id}", headers=user_headers)
        assert [m["content"] for m in chat.json()["messages"]] == ["Launch post", "Fresh copy"]

        kwargs = mock_generation.call_args.kwargs
        assert kwargs["api_key"] == "gsk-user"
        assert kwargs["temperature"] == 0.9

    async def test_generate_without_groq_key(self, client, chat_id, user_headers, mock_generation, monkeypatch):
        from copymode.core.config import settings
        monkeypatch.setattr(settings, "GROQ_API_KEY", None)

        response = await client.post(
            f"{API}/chats/{chat_id}/generate", json={"message": "Launch post"}, headers=user_headers
        )

        assert response.status_code == 400
        assert "Groq API key not configured" in response.json()["detail"]
        mock_generation.assert_not_awaited()

    async def test_generate_uses_server_key(self, client, chat_id, user_headers, mock_generation, monkeypatch):
        from copymode.core.config import settings
        monkeypatch.setattr(settings, "GROQ_API_KEY", "gsk-server")

        response = await client.post(
            f"{API}/chats/{chat_id}/generate",
            json={"message": "Launch post", "temperature": 0.1},
            headers=user_headers
        )

        assert response.status_code == 200
        assert mock_generation.call_args.kwargs["api_key"] == "gsk-server"
        assert mock_generation.call_args.kwargs["temperature"] == 0.1

    async def test_upstream_error_status_is_forwarded(
        self, client, chat_id, user_headers, mock_generation, monkeypatch
    ):
        from copymode.core.config import settings
        monkeypatch.setattr(settings, "GROQ_API_KEY", "gsk-server")
        mock_generation.side_effect = UpstreamAPIError("Groq API Error (429): Rate limit reached", status_code=429)

        response = await client.post(
            f"{API}/chats/{chat_id}/generate", json={"message": "Launch post"}, headers=user_headers
        )

        assert response.status_code == 429
        assert response.json() == {"detail": "Groq API Error (429): Rate limit reached"}

    async def test_blank_message_rejected(self, client, chat_id, user_headers, mock_generation):
        response = await client.post(
            f"{API}/chats/{chat_id}/generate", json={"message": "   "}, headers=user_headers
        )

        assert response.status_code == 400

    async def test_generate_in_someone_elses_chat(self, client, chat_id, other_headers, mock_generation):
        response = await client.post(
            f"{API}/chats/{chat_id}/generate", json={"message": "Hi"}, headers=other_headers
        )

        assert response.status_code == 404
