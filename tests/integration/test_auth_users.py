"""
Integration tests for login, profile settings and admin user management.
"""
from sqlalchemy import select

from copymode.core.security import verify_password
from copymode.models import Chat, Expert, User
from tests.conftest import API, TEST_PASSWORD, auth_headers, create_user

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


class TestLogin:

    async def test_login_returns_token_and_user(self, client, regular_user):
        response = await client.post(
            f"{API}/auth/login",
            json={"email": "user@example.com", "password": TEST_PASSWORD}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["token_type"] == "bearer"
        assert data["user"]["email"] == "user@example.com"
        assert data["user"]["last_login"] is not None

        me = await client.get(
            f"{API}/users/me",
            headers={"Authorization": f"Bearer {data['access_token']}"}
        )
        assert me.status_code == 200
        assert me.json()["id"] == regular_user.id

    async def test_login_email_is_case_insensitive(self, client, regular_user):
        response = await client.post(
            f"{API}/auth/login",
            json={"email": " User@Example.com ", "password": TEST_PASSWORD}
        )

        assert response.status_code == 200

    async def test_wrong_password(self, client, regular_user):
        response = await client.post(
            f"{API}/auth/login",
            json={"email": "user@example.com", "password": "nope"}
        )

        assert response.status_code == 401

    async def test_unknown_email(self, client):
        response = await client.post(
            f"{API}/auth/login",
            json={"email": "ghost@example.com", "password": TEST_PASSWORD}
        )

        assert response.status_code == 401

    async def test_inactive_user(self, client, db_session):
        await create_user(db_session, "sleepy@example.com", is_active=False)

        response = await client.post(
            f"{API}/auth/login",
            json={"email": "sleepy@example.com", "password": TEST_PASSWORD}
        )

        assert response.status_code == 401


class TestProfile:

    async def test_requires_token(self, client):
        response = await client.get(f"{API}/users/me")

        assert response.status_code in (401, 403)

    async def test_invalid_token(self, client):
        response = await client.get(f"{API}/users/me", headers={"Authorization": "Bearer garbage"})

        assert response.status_code == 401

    async def test_inactive_user_token_rejected(self, client, db_session):
        user = await create_user(db_session, "sleepy@example.com", is_active=False)

        response = await client.get(f"{API}/users/me", headers=auth_headers(user))

        assert response.status_code == 401

    async def test_update_name(self, client, user_headers):
        response = await client.patch(f"{API}/users/me", json={"name": "  New Name "}, headers=user_headers)

        assert response.status_code == 200
        assert response.json()["name"] == "New Name"

    async def test_set_and_clear_api_key(self, client, db_session, regular_user, user_headers):
        response = await client.put(f"{API}/users/me/api-key", json={"api_key": "gsk-123"}, headers=user_headers)
        assert response.status_code == 200
        assert response.json()["has_api_key"] is True
        assert "gsk-123" not in response.text

        response = await client.put(f"{API}/users/me/api-key", json={"api_key": None}, headers=user_headers)
        assert response.json()["has_api_key"] is False

        await db_session.refresh(regular_user)
        assert regular_user.api_key is None

    async def test_change_password(self, client, db_session, regular_user, user_headers):
        response = await client.put(
            f"{API}/users/me/password",
            json={"current_password": TEST_PASSWORD, "new_password": "brand-new-pass"},
            headers=user_headers
        )

        assert response.status_code == 200
        await db_session.refresh(regular_user)
        assert verify_password("brand-new-pass", regular_user.hashed_password)

    async def test_change_password_wrong_current(self, client, user_headers):
        response = await client.put(
            f"{API}/users/me/password",
            json={"current_password": "wrong", "new_password": "brand-new-pass"},
            headers=user_headers
        )

        assert response.status_code == 400

    async def test_upload_avatar(self, client, user_headers):
        response = await client.post(
            f"{API}/users/me/avatar",
            files={"file": ("me.png", PNG_BYTES, "image/png")},
            headers=user_headers
        )

        assert response.status_code == 200
        avatar_url = response.json()["avatar_url"]
        assert avatar_url.startswith("/storage/avatars/")

        served = await client.get(avatar_url)
        assert served.status_code == 200
        assert served.content == PNG_BYTES

    async def test_avatar_must_be_image(self, client, user_headers):
        response = await client.post(
            f"{API}/users/me/avatar",
            files={"file": ("notes.txt", b"hello", "text/plain")},
            headers=user_headers
        )

        assert response.status_code == 400
        assert "detail" in response.json()


class TestAdminUsers:

    async def test_list_requires_admin(self, client, user_headers):
        response = await client.get(f"{API}/users", headers=user_headers)

        assert response.status_code == 403

    async def test_list_with_role_filter(self, client, admin_headers, regular_user):
        response = await client.get(f"{API}/users", params={"role": "user"}, headers=admin_headers)

        assert response.status_code == 200
        assert [u["email"] for u in response.json()] == ["user@example.com"]

    async def test_create_user(self, client, db_session, admin_headers):
        response = await client.post(
            f"{API}/users",
            json={"email": "New@Example.com", "password": "secret99", "name": "Newbie"},
            headers=admin_headers
        )

        assert response.status_code == 200
        assert response.json()["email"] == "new@example.com"
        assert response.json()["role"] == "user"

        login = await client.post(f"{API}/auth/login", json={"email": "new@example.com", "password": "secret99"})
        assert login.status_code == 200

    async def test_create_duplicate_email(self, client, admin_headers, regular_user):
        response = await client.post(
            f"{API}/users",
            json={"email": "user@example.com", "password": "secret99", "name": "Dup"},
            headers=admin_headers
        )

        assert response.status_code == 400

    async def test_create_invalid_role(self, client, admin_headers):
        response = await client.post(
            f"{API}/users",
            json={"email": "x@example.com", "password": "secret99", "name": "X", "role": "root"},
            headers=admin_headers
        )

        assert response.status_code == 400

    async def test_update_role_and_status(self, client, admin_headers, regular_user):
        response = await client.patch(
            f"{API}/users/{regular_user.id}",
            json={"role": "admin", "is_active": False},
            headers=admin_headers
        )

        assert response.status_code == 200
        assert response.json()["role"] == "admin"
        assert response.json()["is_active"] is False

    async def test_update_missing_user(self, client, admin_headers):
        response = await client.patch(f"{API}/users/missing", json={"name": "X"}, headers=admin_headers)

        assert response.status_code == 404

    async def test_delete_user_cascades(self, client, db_session, admin_headers, regular_user, expert, agent):
        db_session.add(Chat(title="Chat", agent_id=agent.id, user_id=regular_user.id))
        await db_session.commit()

        response = await client.delete(f"{API}/users/{regular_user.id}", headers=admin_headers)

        assert response.status_code == 200
        db_session.expunge_all()
        assert (await db_session.execute(select(User).where(User.id == regular_user.id))).scalar_one_or_none() is None
        assert (await db_session.execute(select(Expert))).scalars().all() == []
        assert (await db_session.execute(select(Chat))).scalars().all() == []

    async def test_cannot_delete_self(self, client, admin_headers, admin_user):
        response = await client.delete(f"{API}/users/{admin_user.id}", headers=admin_headers)

        assert response.status_code == 400
