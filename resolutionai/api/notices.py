"""Short-lived error notices shown to the user after a failed request."""

import threading
import uuid
from datetime import datetime, timedelta
from typing import List

from pydantic import BaseModel, Field

from resolutionai.models.constants import DEFAULT_NOTICE_TTL_SECONDS


class Notice(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    message: str
    created_at: datetime
    expires_at: datetime


class NoticeBoard:
    """In-memory notices that expire after `ttl_seconds`."""

    def __init__(self, ttl_seconds: int = DEFAULT_NOTICE_TTL_SECONDS):
        self.ttl = timedelta(seconds=ttl_seconds)
        self._notices: List[Notice] = []
        self._lock = threading.Lock()

    def post(self, message: str, now: datetime) -> Notice:
        notice = Notice(message=message, created_at=now, expires_at=now + self.ttl)
        with self._lock:
            self._notices.append(notice)
        return notice

    def active(self, now: datetime) -> List[Notice]:
        """Return unexpired notices, dropping the expired ones."""
        with self._lock:
            self._notices = [n for n in self._notices if n.expires_at > now]
            return list(self._notices)

    def clear(self) -> None:
        with self._lock:
            self._notices = []
