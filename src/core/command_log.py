"""Bounded, append-only record of user, agent and system actions.

Entries are kept in a deque with a fixed maxlen (oldest dropped first) and
mirrored to the `logging` module for operators.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Deque, Dict, List

_LOG = logging.getLogger(__name__)


class LogSource(str, Enum):
    USER = "user"
    AGENT = "agent"
    SYSTEM = "system"


@dataclass(frozen=True, slots=True)
class LogEntry:
    source: LogSource
    message: str
    timestamp: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source": self.source.value,
            "message": self.message,
            "timestamp": self.timestamp.isoformat(),
        }


class CommandLog:
    def __init__(self, *, maxlen: int = 200) -> None:
        self._entries: Deque[LogEntry] = deque(maxlen=max(1, int(maxlen)))

    def append(self, source: LogSource, message: str) -> LogEntry:
        entry = LogEntry(source=source, message=message, timestamp=datetime.now(timezone.utc))
        self._entries.append(entry)
        _LOG.info("[%s] %s", source.value, message)
        return entry

    def user(self, message: str) -> LogEntry:
        return self.append(LogSource.USER, message)

    def agent(self, message: str) -> LogEntry:
        return self.append(LogSource.AGENT, message)

    def system(self, message: str) -> LogEntry:
        return self.append(LogSource.SYSTEM, message)

    def entries(self) -> List[LogEntry]:
        return list(self._entries)

    def tail(self, n: int) -> List[LogEntry]:
        if n <= 0:
            return []
        return list(self._entries)[-n:]

    def __len__(self) -> int:
        return len(self._entries)
