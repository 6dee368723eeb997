# room_janitor/services/hipchat_client.py

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Type

import httpx
from pydantic import ValidationError

from room_janitor.core.errors import (
    ArchiveUpdateError,
    DirectoryListError,
    RoomFetchError,
    TransportError,
)
from room_janitor.models.models import (
    RoomDetail,
    RoomStatistics,
    RoomSummary,
    UpdateRoomRequest,
)

logger = logging.getLogger(__name__)


# ============================================================================
# HIPCHAT API v2 CLIENT
# ============================================================================

class HipChatClient:
    """
    Thin synchronous adapter over the HipChat v2 REST API.

    Only the four room calls the janitor needs are exposed. Every failure
    (network error, non-2xx status, body that does not match the expected
    record) is raised as a TransportError subclass naming the operation.

    Args:
        token: API token, sent as a bearer token
        base_url: API root including the version, e.g. https://chat.example.com/v2/
        verify: TLS certificate verification. Only the insecure flag turns it off.
        transport: optional httpx transport (tests inject a MockTransport)

    Usage:
        with HipChatClient(token, "https://chat.example.com/v2/") as client:
            for summary in client.list_rooms():
                room = client.get_room(summary.id)
    """

    def __init__(
        self,
        token: str,
        base_url: str,
        *,
        verify: bool = True,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.base_url = base_url
        self._client = httpx.Client(
            base_url=base_url,
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": "application/json",
            },
            verify=verify,
            transport=transport,
        )

    def __enter__(self) -> "HipChatClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    # ------------------------------------------------------------------
    # Room operations
    # ------------------------------------------------------------------

    def list_rooms(
        self,
        include_private: bool = True,
        include_archived: bool = False,
    ) -> List[RoomSummary]:
        """
        List rooms visible to the token.

        Raises:
            DirectoryListError: the listing could not be retrieved
        """
        params = {
            "include-private": _flag(include_private),
            "include-archived": _flag(include_archived),
        }
        data = self._request("GET", "room", DirectoryListError, params=params)
        items = data.get("items")
        if not isinstance(items, list):
            raise DirectoryListError(
                f"Unexpected room list payload: 'items' is {type(items).__name__}, not a list"
            )
        try:
            return [RoomSummary.model_validate(item) for item in items]
        except ValidationError as exc:
            raise DirectoryListError(f"Unexpected room list payload: {exc}") from exc

    def get_room(self, room_id: int) -> RoomDetail:
        """
        Fetch the full record of a room.

        Raises:
            RoomFetchError: request failed or the record is malformed
        """
        data = self._request("GET", f"room/{room_id}", RoomFetchError)
        return _parse(RoomDetail, data, RoomFetchError)

    def get_room_statistics(self, room_id: int) -> RoomStatistics:
        """
        Fetch activity statistics of a room.

        Raises:
            RoomFetchError: request failed or the record is malformed
        """
        data = self._request("GET", f"room/{room_id}/statistics", RoomFetchError)
        return _parse(RoomStatistics, data, RoomFetchError)

    def update_room(self, room_id: int, request: UpdateRoomRequest) -> None:
        """
        Replace a room record (HipChat answers 204 No Content).

        Raises:
            ArchiveUpdateError: the update was not accepted
        """
        self._request(
            "PUT",
            f"room/{room_id}",
            ArchiveUpdateError,
            json=request.model_dump(),
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _request(
        self,
        method: str,
        path: str,
        error_cls: Type[TransportError],
        **kwargs: Any,
    ) -> Dict[str, Any]:
        logger.debug("HipChat API %s %s", method, path)
        try:
            resp = self._client.request(method, path, **kwargs)
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            raise error_cls(
                f"{method} {path} returned HTTP {status}: {_error_message(exc.response)}",
                status_code=status,
            ) from exc
        except httpx.HTTPError as exc:
            raise error_cls(f"{method} {path} failed: {exc}") from exc

        if resp.status_code == 204 or not resp.content:
            return {}
        try:
            data = resp.json()
        except ValueError as exc:
            raise error_cls(
                f"{method} {path} returned a non-JSON body",
                status_code=resp.status_code,
            ) from exc
        if not isinstance(data, dict):
            raise error_cls(
                f"{method} {path} returned an unexpected body",
                status_code=resp.status_code,
            )
        return data


def _flag(value: bool) -> str:
    return "true" if value else "false"


def _parse(model, data: Dict[str, Any], error_cls: Type[TransportError]):
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise error_cls(f"Unexpected {model.__name__} payload: {exc}") from exc


def _error_message(response: httpx.Response) -> str:
    """Pull HipChat's error message out of a failed response when present."""
    try:
        body = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
    return response.text[:200]
