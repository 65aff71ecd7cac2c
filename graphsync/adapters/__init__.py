"""Adapters to the backend, the event channel and the notice UI."""

from graphsync.adapters.backend_api import BackendAPI
from graphsync.adapters.event_channel import EventChannel, InMemoryEventChannel
from graphsync.adapters.notices import (
    ListNotifier,
    LogNotifier,
    Notice,
    Notifier,
    NoticeVariant,
)

__all__ = [
    "BackendAPI",
    "EventChannel",
    "InMemoryEventChannel",
    "ListNotifier",
    "LogNotifier",
    "Notice",
    "NoticeVariant",
    "Notifier",
]
