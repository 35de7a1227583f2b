"""Batch session state and the registry that owns live sessions."""

from __future__ import annotations

import threading
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Sequence

from placescout.extractors.schemas import DiscoveryJob, ExtractedRecord


class SessionStatus(str, Enum):
    """Lifecycle of a batch session. Everything except RUNNING is terminal."""

    RUNNING = "running"
    COMPLETED = "completed"
    ERROR = "error"
    CANCELLED = "cancelled"


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _iso(value: datetime | None) -> str | None:
    if value is None:
        return None
    return value.isoformat().replace("+00:00", "Z")


def new_session_id() -> str:
    return f"session_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


class SessionStateError(RuntimeError):
    """Raised when a terminal session is asked to change state."""


@dataclass
class BatchSession:
    """Progress and results of one batch of discovery jobs."""

    id: str
    jobs: list[DiscoveryJob]
    status: SessionStatus = SessionStatus.RUNNING
    current_job_index: int = 0
    accumulated_records: list[ExtractedRecord] = field(default_factory=list)
    started_at: datetime = field(default_factory=_now_utc)
    ended_at: datetime | None = None
    last_error: str | None = None
    progress: int = 0
    total: int = 0
    cancel_requested: bool = field(default=False, repr=False)

    def __post_init__(self) -> None:
        if not self.total and self.jobs:
            limit = self.jobs[0].result_limit
            self.total = len(self.jobs) * limit if limit else 0

    @property
    def is_terminal(self) -> bool:
        return self.status is not SessionStatus.RUNNING

    @property
    def current_job(self) -> DiscoveryJob | None:
        if not self.jobs:
            return None
        return self.jobs[min(self.current_job_index, len(self.jobs) - 1)]

    def begin_job(self, index: int) -> DiscoveryJob:
        self._ensure_running()
        self.current_job_index = index
        return self.jobs[index]

    def update_total(self, discovered: int) -> None:
        """Re-estimate the total after the current job's discovery finished."""

        remaining = len(self.jobs) - self.current_job_index - 1
        limit = self.jobs[self.current_job_index].result_limit
        per_job = limit if limit is not None else discovered
        self.total = len(self.accumulated_records) + discovered + remaining * per_job

    def record_accepted(self, record: ExtractedRecord) -> None:
        self._ensure_running()
        self.accumulated_records.append(record)
        self.progress = len(self.accumulated_records)

    def cancel(self) -> bool:
        """Ask a running session to stop at the next item boundary."""

        if self.is_terminal:
            return False
        self.cancel_requested = True
        return True

    def mark_completed(self) -> None:
        self._finish(SessionStatus.COMPLETED)
        self.total = self.progress = len(self.accumulated_records)

    def mark_cancelled(self) -> None:
        self._finish(SessionStatus.CANCELLED)

    def mark_error(self, message: str) -> None:
        self._finish(SessionStatus.ERROR)
        self.last_error = message

    def _finish(self, status: SessionStatus) -> None:
        self._ensure_running()
        self.status = status
        self.ended_at = _now_utc()

    def _ensure_running(self) -> None:
        if self.is_terminal:
            raise SessionStateError(f"Session {self.id} is already {self.status.value}")

    def results(self) -> list[ExtractedRecord]:
        return list(self.accumulated_records)

    def snapshot(self) -> dict[str, Any]:
        """Read-only status view for callers."""

        job = self.current_job
        return {
            "status": self.status.value,
            "progress": self.progress,
            "total": self.total,
            "resultsCount": len(self.accumulated_records),
            "error": self.last_error,
            "startTime": _iso(self.started_at),
            "endTime": _iso(self.ended_at),
            "currentKeyword": job.search_term if job else None,
            "keywordIndex": self.current_job_index + 1 if job else 0,
            "totalKeywords": len(self.jobs),
        }


class SessionRegistry:
    """Explicit create/get/expire store for sessions, owned by whoever hosts the orchestrator."""

    def __init__(self) -> None:
        self._sessions: dict[str, BatchSession] = {}
        self._lock = threading.Lock()

    def create(self, jobs: Sequence[DiscoveryJob]) -> BatchSession:
        session = BatchSession(id=new_session_id(), jobs=list(jobs))
        with self._lock:
            self._sessions[session.id] = session
        return session

    def get(self, session_id: str) -> BatchSession | None:
        with self._lock:
            return self._sessions.get(session_id)

    def remove(self, session_id: str) -> bool:
        with self._lock:
            return self._sessions.pop(session_id, None) is not None

    def expire(self, max_age: timedelta, *, now: datetime | None = None) -> int:
        """Drop terminal sessions that ended more than *max_age* ago."""

        cutoff = (now or _now_utc()) - max_age
        with self._lock:
            stale = [
                session_id
                for session_id, session in self._sessions.items()
                if session.is_terminal and session.ended_at is not None and session.ended_at < cutoff
            ]
            for session_id in stale:
                del self._sessions[session_id]
        return len(stale)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        with self._lock:
            return session_id in self._sessions
