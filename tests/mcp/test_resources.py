"""MCP resources: URI dispatch, payload shapes and zero-filled failures."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from chatdesk.core import ChatDeskDB
from chatdesk.mcp_server import list_resource_templates, list_resources, read_resource
from tests._factories import ChatFactory, UserFactory
from tests.mcp._helpers import _parse_resource

T0 = datetime(2024, 3, 1, 9, 0, tzinfo=UTC)


async def _read(uri: str) -> dict:
    return _parse_resource(await read_resource(uri))


def _assert_timestamp(body: dict) -> None:
    parsed = datetime.fromisoformat(body["timestamp"])
    assert parsed.tzinfo is not None
    assert parsed.microsecond == 0


class TestListing:
    async def test_static_resources(self, mcp_db: ChatDeskDB) -> None:
        uris = {str(r.uri) for r in await list_resources()}
        assert uris == {"users://list", "users://active"}

    async def test_templates(self, mcp_db: ChatDeskDB) -> None:
        templates = {t.uriTemplate for t in await list_resource_templates()}
        assert templates == {
            "user://{user_id}/profile",
            "user://{user_id}/summary",
            "chat://{user_id}/history",
            "chat://{user_id}/recent",
            "chat://{user_id}/sessions",
            "chat://{user_id}/count",
            "chat://session/{session_id}",
        }

    async def test_json_mime_type(self, mcp_db: ChatDeskDB) -> None:
        contents = await read_resource("users://list")
        assert contents[0].mime_type == "application/json"


class TestUserResources:
    async def test_profile(self, mcp_db: ChatDeskDB, users: UserFactory) -> None:
        user = users.create()
        body = await _read(f"user://{user.id}/profile")
        assert body["user"] == user.to_dict()
        assert body["profile_url"] == f"user://{user.id}/profile"
        assert "success" not in body
        _assert_timestamp(body)

    async def test_profile_missing_user(self, mcp_db: ChatDeskDB) -> None:
        body = await _read("user://99/profile")
        assert body["error"] == "User not found"
        assert body["user_id"] == 99
        assert body["user"] is None
        assert body["profile_url"] == "user://99/profile"
        _assert_timestamp(body)

    async def test_summary(self, mcp_db: ChatDeskDB, users: UserFactory) -> None:
        user = users.create(first_name="Grace", last_name="Hopper")
        body = await _read(f"user://{user.id}/summary")
        assert body["id"] == user.id
        assert body["name"] == "Grace Hopper"
        assert body["email"] == user.email
        assert body["status"] == "active"
        assert body["created_at"] == user.created_at
        assert body["summary_url"] == f"user://{user.id}/summary"

    async def test_summary_missing_user_zero_fills(self, mcp_db: ChatDeskDB) -> None:
        body = await _read("user://7/summary")
        assert body["error"] == "User not found"
        assert body["user_id"] == 7
        for key in ("id", "name", "email", "status", "created_at"):
            assert body[key] is None
        assert body["summary_url"] == "user://7/summary"

    async def test_users_list_in_id_order(self, mcp_db: ChatDeskDB, users: UserFactory) -> None:
        created = users.create_batch(3)
        users.create(status="inactive")
        body = await _read("users://list")
        assert [u["id"] for u in body["users"]][:3] == [u.id for u in created]
        assert body["count"] == 4
        assert set(body) == {"users", "count", "timestamp"}

    async def test_active_users(self, mcp_db: ChatDeskDB, users: UserFactory) -> None:
        users.create(first_name="Bea")
        users.create(first_name="Abe")
        users.create(first_name="Cal", status="suspended")
        body = await _read("users://active")
        assert [u["first_name"] for u in body["users"]] == ["Abe", "Bea"]
        assert body["count"] == 2

    async def test_active_users_limit_param(self, mcp_db: ChatDeskDB, users: UserFactory) -> None:
        users.create_batch(3)
        body = await _read("users://active?limit=1")
        assert body["count"] == 1


class TestChatResources:
    @pytest.mark.parametrize(("path", "key"), [("history", "history_url"), ("recent", "recent_url")])
    async def test_user_messages_newest_first(
        self, mcp_db: ChatDeskDB, users: UserFactory, chats: ChatFactory, path: str, key: str
    ) -> None:
        user = users.create()
        ids = [chats.create(user_id=user.id, timestamp=T0 + timedelta(minutes=i)).id for i in range(3)]
        body = await _read(f"chat://{user.id}/{path}")
        assert [m["id"] for m in body["messages"]] == list(reversed(ids))
        assert body["count"] == 3
        assert body["user_id"] == user.id
        assert body[key] == f"chat://{user.id}/{path}"
        _assert_timestamp(body)

    @pytest.mark.parametrize(("path", "key"), [("history", "history_url"), ("recent", "recent_url")])
    async def test_user_messages_missing_user_zero_fills(self, mcp_db: ChatDeskDB, path: str, key: str) -> None:
        body = await _read(f"chat://404/{path}")
        assert body["error"] == "User not found"
        assert body["messages"] == []
        assert body["count"] == 0
        assert body["user_id"] == 404
        assert body[key] == f"chat://404/{path}"
        _assert_timestamp(body)

    async def test_history_pagination_params(self, mcp_db: ChatDeskDB, users: UserFactory, chats: ChatFactory) -> None:
        user = users.create()
        ids = [chats.create(user_id=user.id, timestamp=T0 + timedelta(minutes=i)).id for i in range(5)]
        body = await _read(f"chat://{user.id}/history?limit=2&offset=2")
        assert [m["id"] for m in body["messages"]] == [ids[2], ids[1]]
        assert body["history_url"] == f"chat://{user.id}/history"

    async def test_session(self, mcp_db: ChatDeskDB, users: UserFactory, chats: ChatFactory) -> None:
        user = users.create()
        chats.create_batch(2, user_id=user.id, session_id="sess-42")
        chats.create(user_id=user.id, session_id="other")
        body = await _read("chat://session/sess-42")
        assert body["session_id"] == "sess-42"
        assert body["count"] == 2
        assert body["session_url"] == "chat://session/sess-42"

    async def test_unknown_session_is_empty(self, mcp_db: ChatDeskDB) -> None:
        body = await _read("chat://session/none-here")
        assert body["messages"] == []
        assert body["count"] == 0
        assert "error" not in body

    async def test_sessions(self, mcp_db: ChatDeskDB, users: UserFactory, chats: ChatFactory) -> None:
        user = users.create()
        chats.create(user_id=user.id, session_id="a", timestamp=T0)
        chats.create(user_id=user.id, session_id="b", timestamp=T0 + timedelta(days=1))
        chats.create(user_id=user.id, session_id=None, timestamp=T0 + timedelta(days=2))
        body = await _read(f"chat://{user.id}/sessions")
        assert [s["session_id"] for s in body["sessions"]] == ["b", "a"]
        assert body["count"] == 2
        assert body["sessions_url"] == f"chat://{user.id}/sessions"

    async def test_sessions_missing_user_zero_fills(self, mcp_db: ChatDeskDB) -> None:
        body = await _read("chat://8/sessions")
        assert body["error"] == "User not found"
        assert body["sessions"] == []
        assert body["count"] == 0
        assert body["sessions_url"] == "chat://8/sessions"

    async def test_count(self, mcp_db: ChatDeskDB, users: UserFactory, chats: ChatFactory) -> None:
        user = users.create()
        chats.create_batch(4, user_id=user.id)
        body = await _read(f"chat://{user.id}/count")
        assert body["message_count"] == 4
        assert body["count_url"] == f"chat://{user.id}/count"

    async def test_count_missing_user_is_zero(self, mcp_db: ChatDeskDB) -> None:
        body = await _read("chat://55/count")
        assert body["message_count"] == 0
        assert body["user_id"] == 55
        assert "error" not in body


class TestBadUris:
    @pytest.mark.parametrize(
        "uri",
        [
            "user://abc/profile",
            "user://1/avatar",
            "users://everyone",
            "chat://1/history/extra",
            "chat://session/",
            "mail://1/inbox",
            "chat://1/history?limit=ten",
            "chat://1/history?offset=-1",
        ],
    )
    async def test_raises_value_error(self, mcp_db: ChatDeskDB, uri: str) -> None:
        with pytest.raises(ValueError):
            await read_resource(uri)
