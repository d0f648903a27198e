"""Notifications emitted when tracks receive new positions.

The registry posts these to a :class:`NotificationSink`; consoles, speech
engines and loggers implement the sink.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from enum import StrEnum
from typing import Protocol

from pydantic import BaseModel, ConfigDict, Field


class NotificationKind(StrEnum):
    NEW_POSITION = "new_position"
    AUDIBLE_ALERT = "audible_alert"


class Notification(BaseModel):
    """A ``(title, message)`` event for a notification collaborator."""

    model_config = ConfigDict(frozen=True)

    kind: NotificationKind
    title: str
    message: str
    asset_name: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class NotificationSink(Protocol):
    """Receives notifications.  Must not block for long; failures are logged by the caller."""

    def post(self, notification: Notification) -> None: ...


class LoggingNotificationSink:
    """Sink that writes notifications to a logger."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger(__name__)

    def post(self, notification: Notification) -> None:
        self._logger.info("[%s] %s: %s", notification.kind, notification.title, notification.message)


class CollectingNotificationSink:
    """Sink that keeps every notification in memory."""

    def __init__(self) -> None:
        self.notifications: list[Notification] = []

    def post(self, notification: Notification) -> None:
        self.notifications.append(notification)

    def of_kind(self, kind: NotificationKind) -> list[Notification]:
        return [n for n in self.notifications if n.kind == kind]
