"""User-visible notices (toasts)."""

from enum import Enum
from typing import Protocol

import structlog
from pydantic import BaseModel

logger = structlog.get_logger(__name__)


class NoticeVariant(str, Enum):
    default = "default"
    destructive = "destructive"


class Notice(BaseModel):
    title: str
    description: str | None = None
    variant: NoticeVariant = NoticeVariant.default
    duration_ms: int | None = None


class Notifier(Protocol):
    """Protocol for showing notices to the user."""

    def notify(self, notice: Notice) -> None:
        ...


class ListNotifier:
    """Stores notices in a list."""

    def __init__(self) -> None:
        self.notices: list[Notice] = []

    def notify(self, notice: Notice) -> None:
        self.notices.append(notice)

    def clear(self) -> None:
        self.notices.clear()


class LogNotifier:
    """Writes notices to the log, for headless use."""

    def notify(self, notice: Notice) -> None:
        log = logger.error if notice.variant == NoticeVariant.destructive else logger.info
        log("notice", title=notice.title, description=notice.description)
