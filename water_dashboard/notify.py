import logging
from dataclasses import dataclass
from typing import Protocol

LOGGER = logging.getLogger(__name__)

DEFAULT = "default"
DESTRUCTIVE = "destructive"


@dataclass(frozen=True)
class Notification:
    title: str
    description: str
    variant: str = DEFAULT


class Notifier(Protocol):
    def notify(self, notification: Notification) -> None: ...


class LoggingNotifier:
    """Fallback notifier for headless runs: every toast becomes a log line."""

    def notify(self, notification: Notification) -> None:
        level = logging.ERROR if notification.variant == DESTRUCTIVE else logging.INFO
        LOGGER.log(level, "%s: %s", notification.title, notification.description)
