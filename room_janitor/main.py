# room_janitor/main.py

from __future__ import annotations

import sys
from typing import Optional, Sequence

from room_janitor.api.server import start_observability
from room_janitor.core.config import Settings, load_settings
from room_janitor.core.errors import ConfigurationError, DirectoryListError, ListenerError
from room_janitor.core.logging import get_logger, setup_logging
from room_janitor.services.hipchat_client import HipChatClient
from room_janitor.services.janitor import Janitor

logger = get_logger(__name__)


def build_client(settings: Settings) -> HipChatClient:
    """Create the API client; TLS verification is off only with --insecure."""
    if settings.insecure:
        logger.warning("⚠️ TLS certificate verification is DISABLED for %s (--insecure)", settings.url)
        return HipChatClient(settings.token.get_secret_value(), settings.url, verify=False)
    return HipChatClient(settings.token.get_secret_value(), settings.url)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    Entry point of the `room-janitor` command.

    Exits with status 1 when the configuration is invalid, when a
    health/metrics listener cannot be started, or when the room listing
    fails. Otherwise it never returns.
    """
    try:
        settings = load_settings(argv)
    except ConfigurationError as exc:
        setup_logging()
        for message in exc.errors:
            logger.critical(message)
            print(message, file=sys.stderr)
        sys.exit(1)

    setup_logging(settings.log_level)

    try:
        start_observability(settings.health_port, settings.metrics_port)
    except ListenerError as exc:
        logger.critical("Fatal: %s", exc)
        sys.exit(1)

    client = build_client(settings)
    janitor = Janitor(client, settings)
    try:
        janitor.run_forever()
    except DirectoryListError as exc:
        logger.critical("Fatal: Could not get rooms list from HipChat: %s", exc)
        sys.exit(1)
    finally:
        client.close()
    return 0


if __name__ == "__main__":
    main()
