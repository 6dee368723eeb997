# room_janitor/services/janitor.py

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

from room_janitor.core.config import Settings
from room_janitor.core.errors import (
    ArchiveUpdateError,
    RoomFetchError,
    TimestampParseError,
)
from room_janitor.models.models import RoomSummary
from room_janitor.services.hipchat_client import HipChatClient
from room_janitor.services.retention import parse_last_active, should_archive

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class SweepResult:
    """Counts for one pass over the room listing."""

    seen: int = 0
    archived: int = 0
    skipped: int = 0
    failed: int = 0


# ============================================================================
# POLLING LOOP
# ============================================================================

class Janitor:
    """
    Periodically archives private rooms idle for at least `max_days`.

    Each sweep lists the non-archived rooms, then for every room in listing
    order fetches its detail, and for private rooms its statistics, and
    archives the room when the retention policy says so.

    Error Handling:
        - Listing failure: DirectoryListError propagates and ends the loop.
          Without a room list there is nothing to sweep.
        - Detail, statistics, timestamp or update failure: logged, the room
          is skipped and the sweep moves on to the next room. No retries;
          a room that failed to archive is picked up again next sweep.

    Scheduling:
        The first sweep runs immediately. Later sweeps run at fixed-rate
        ticks (start + n * interval). A sweep that overruns one or more
        ticks is followed immediately by the next sweep.
    """

    def __init__(
        self,
        client: HipChatClient,
        settings: Settings,
        *,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.client = client
        self.max_days = settings.max_days
        self.interval_seconds = settings.interval * 3600
        self._clock = clock or utc_now
        self._stopped = threading.Event()

    def run_forever(self) -> None:
        """Sweep on every tick until stop() is called or the listing fails."""
        logger.info(
            "HipChat Janitor started. Archiving any rooms untouched for %d days every %d hours.",
            self.max_days,
            self.interval_seconds // 3600,
        )
        next_tick = time.monotonic()
        while not self._stopped.is_set():
            self.sweep()

            next_tick += self.interval_seconds
            now = time.monotonic()
            if next_tick <= now:
                # Missed ticks are dropped, not queued
                logger.warning("Sweep overran its tick; starting next sweep immediately")
                next_tick = now
                continue
            self._stopped.wait(next_tick - now)

    def stop(self) -> None:
        self._stopped.set()

    def sweep(self) -> SweepResult:
        """
        Run one pass over the room listing.

        Raises:
            DirectoryListError: the listing failed; no room was evaluated
        """
        rooms = self.client.list_rooms(include_private=True, include_archived=False)
        result = SweepResult()
        for summary in rooms:
            result.seen += 1
            outcome = self._process_room(summary)
            if outcome == "archived":
                result.archived += 1
            elif outcome == "failed":
                result.failed += 1
            else:
                result.skipped += 1

        logger.info(
            "Sweep finished: %d rooms checked, %d archived, %d failed",
            result.seen,
            result.archived,
            result.failed,
        )
        return result

    def _process_room(self, summary: RoomSummary) -> str:
        try:
            room = self.client.get_room(summary.id)
        except RoomFetchError as exc:
            logger.error("Error: Could not retrieve room '%s': %s", summary.name, exc)
            return "failed"

        if not room.is_private:
            return "kept"

        try:
            stats = self.client.get_room_statistics(room.id)
        except RoomFetchError as exc:
            logger.error("Error: Could not retrieve statistics for room '%s': %s", room.name, exc)
            return "failed"

        try:
            last_active = parse_last_active(stats.last_active)
        except TimestampParseError as exc:
            logger.error(
                "Error: Could not parse LastActive time '%s' for room '%s': %s",
                stats.last_active,
                room.name,
                exc,
            )
            return "failed"

        if not should_archive(room.privacy, last_active, self._clock(), self.max_days):
            return "kept"

        logger.info("Archiving room '%s', not touched in >= %d days.", room.name, self.max_days)
        try:
            self.client.update_room(room.id, room.archive_request())
        except ArchiveUpdateError as exc:
            logger.error("Error: Could not archive room '%s' (id %d): %s", room.name, room.id, exc)
            return "failed"
        return "archived"
