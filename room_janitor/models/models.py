# room_janitor/models/models.py
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict


class RoomSummary(BaseModel):
    """One entry of the room listing."""

    model_config = ConfigDict(extra="ignore")

    id: int
    name: str


class RoomOwner(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    name: str = ""
    mention_name: str = ""


class OwnerRef(BaseModel):
    # The update endpoint wants the owner id as a string
    id: str


class UpdateRoomRequest(BaseModel):
    """Full room record sent back on update; the API rejects partial bodies."""

    name: str
    is_archived: bool
    is_guest_accessible: bool
    owner: OwnerRef
    privacy: Literal["public", "private"]
    topic: str = ""


class RoomDetail(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    name: str
    privacy: Literal["public", "private"]
    is_guest_accessible: bool = False
    owner: RoomOwner
    topic: Optional[str] = ""
    is_archived: bool = False

    @property
    def is_private(self) -> bool:
        return self.privacy == "private"

    def archive_request(self) -> UpdateRoomRequest:
        """Echo this room back with the archived flag set."""
        return UpdateRoomRequest(
            name=self.name,
            is_archived=True,
            is_guest_accessible=self.is_guest_accessible,
            owner=OwnerRef(id=str(self.owner.id)),
            privacy=self.privacy,
            topic=self.topic or "",
        )


class RoomStatistics(BaseModel):
    model_config = ConfigDict(extra="ignore")

    last_active: Optional[str] = None
    messages_sent: int = 0
