from __future__ import annotations

import json
import re
from datetime import datetime, timedelta, timezone
from typing import Any

import httpx
import pytest

from room_janitor.core.config import Settings
from room_janitor.services.hipchat_client import HipChatClient

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)
BASE_URL = "https://chat.example.com/v2/"

_ROOM_PATH = re.compile(r"^/v2/room/(\d+)(/statistics)?$")


def make_settings(**overrides: Any) -> Settings:
    values: dict[str, Any] = {"token": "secret", "url": BASE_URL, "interval": 24, "max_days": 30}
    values.update(overrides)
    return Settings(**values)


def iso(moment: datetime) -> str:
    return moment.isoformat()


class FakeHipChat:
    """In-memory HipChat v2 API served through httpx.MockTransport."""

    def __init__(self) -> None:
        self.rooms: dict[int, dict[str, Any]] = {}
        self.stats: dict[int, dict[str, Any]] = {}
        self.requests: list[httpx.Request] = []
        self.updates: dict[int, dict[str, Any]] = {}
        self.fail_list = False
        self.fail_detail: set[int] = set()
        self.fail_stats: set[int] = set()
        self.fail_update: set[int] = set()

    def add_room(
        self,
        room_id: int,
        name: str,
        privacy: str = "private",
        last_active: str | None = None,
        **extra: Any,
    ) -> None:
        self.rooms[room_id] = {
            "id": room_id,
            "name": name,
            "privacy": privacy,
            "is_guest_accessible": extra.pop("is_guest_accessible", False),
            "is_archived": extra.pop("is_archived", False),
            "topic": extra.pop("topic", f"{name} topic"),
            "owner": {"id": extra.pop("owner_id", 7), "name": "Owner", "mention_name": "owner"},
            "links": {"self": f"{BASE_URL}room/{room_id}"},
            **extra,
        }
        self.stats[room_id] = {"messages_sent": 12, "last_active": last_active}

    def paths(self) -> list[str]:
        return [f"{r.method} {r.url.path}" for r in self.requests]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path == "/v2/room" and request.method == "GET":
            if self.fail_list:
                return httpx.Response(500, json={"error": {"code": 500, "message": "boom"}})
            items = [
                {"id": r["id"], "name": r["name"], "links": r["links"]}
                for r in self.rooms.values()
                if not r["is_archived"]
            ]
            return httpx.Response(200, json={"items": items, "startIndex": 0, "maxResults": 100})

        match = _ROOM_PATH.match(path)
        if match is None:
            return httpx.Response(404, json={"error": {"code": 404, "message": "Not found"}})
        room_id = int(match.group(1))
        if room_id not in self.rooms:
            return httpx.Response(404, json={"error": {"code": 404, "message": "Room not found"}})

        if match.group(2):
            if room_id in self.fail_stats:
                return httpx.Response(503, text="unavailable")
            return httpx.Response(200, json=self.stats[room_id])

        if request.method == "PUT":
            if room_id in self.fail_update:
                return httpx.Response(400, json={"error": {"code": 400, "message": "Invalid owner"}})
            body = json.loads(request.content)
            self.updates[room_id] = body
            self.rooms[room_id]["is_archived"] = body["is_archived"]
            return httpx.Response(204)

        if room_id in self.fail_detail:
            raise httpx.ConnectError("connection reset", request=request)
        return httpx.Response(200, json=self.rooms[room_id])

    def client(self) -> HipChatClient:
        return HipChatClient("secret", BASE_URL, transport=httpx.MockTransport(self.handler))


@pytest.fixture
def fake() -> FakeHipChat:
    return FakeHipChat()


@pytest.fixture
def days_ago():
    def _days_ago(days: float = 0, hours: float = 0) -> str:
        return iso(NOW - timedelta(days=days, hours=hours))

    return _days_ago
