import logging
import math
from collections.abc import Callable
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, PrivateAttr

from jobqueue.config import settings
from jobqueue.serialization.normalizer import normalize

logger = logging.getLogger(__name__)

JobEventType = Literal["progress"]
JobListener = Callable[["Job"], None]


class JobState(str, Enum):
    PENDING = "PENDING"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    RETRYING = "RETRYING"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"


SETTLED_STATES = frozenset({JobState.COMPLETED, JobState.FAILED, JobState.CANCELLED})


class JobStateError(RuntimeError):
    def __init__(self, job_id: UUID, state: JobState, action: str) -> None:
        super().__init__(f"Cannot {action} job {job_id} in state {state.value}")
        self.job_id = job_id
        self.state = state
        self.action = action


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Job(BaseModel):
    """A unit of work for a named queue.

    ``data`` is normalized into plain JSON-safe values when the job is
    built, so the payload can be persisted and sent as-is.
    """

    id: UUID = Field(default_factory=uuid4)
    queue_name: str = Field(min_length=1)
    data: Any = None
    state: JobState = JobState.PENDING
    progress: int = Field(default=0, ge=0, le=100)
    result: Any = None
    error: str | None = None
    retries: int = Field(default=0, ge=0)
    attempts: int = Field(default=0, ge=0)
    created_at: datetime = Field(default_factory=_utcnow)
    started_at: datetime | None = None
    settled_at: datetime | None = None

    _listeners: dict[str, list[Callable[..., None]]] = PrivateAttr(default_factory=dict)

    def __init__(self, **values: Any) -> None:
        # model_validate and model_validate_json load stored payloads untouched.
        if "data" in values:
            values["data"] = normalize(values["data"], max_depth=settings.max_payload_depth)
        super().__init__(**values)

    @property
    def is_settled(self) -> bool:
        return self.state in SETTLED_STATES

    @property
    def duration(self) -> int:
        """Milliseconds spent since the job started, up to settlement."""
        if self.started_at is None:
            return 0
        end = self.settled_at or _utcnow()
        return int((end - self.started_at).total_seconds() * 1000)

    def start(self) -> None:
        if self.state not in (JobState.PENDING, JobState.RETRYING):
            raise JobStateError(self.id, self.state, "start")
        self.state = JobState.RUNNING
        self.started_at = _utcnow()
        self.attempts += 1
        logger.debug(
            "Job started",
            extra={"job_id": str(self.id), "queue": self.queue_name, "attempt": self.attempts},
        )

    def set_progress(self, percent: float) -> None:
        if math.isnan(percent):
            percent = 0
        self.progress = int(max(0.0, min(100.0, percent)))
        self._emit("progress")

    def complete(self, result: Any = None) -> None:
        if self.state is not JobState.RUNNING:
            raise JobStateError(self.id, self.state, "complete")
        self.result = normalize(result, max_depth=settings.max_payload_depth)
        self.progress = 100
        self.state = JobState.COMPLETED
        self.settled_at = _utcnow()

    def fail(self, err: BaseException | str | None = None) -> None:
        if self.state is not JobState.RUNNING:
            raise JobStateError(self.id, self.state, "fail")
        self.error = None if err is None else str(err)
        self.progress = 0
        if self.attempts <= self.retries:
            self.state = JobState.RETRYING
        else:
            self.state = JobState.FAILED
            self.settled_at = _utcnow()
        logger.info(
            "Job failed",
            extra={
                "job_id": str(self.id),
                "queue": self.queue_name,
                "attempt": self.attempts,
                "state": self.state.value,
            },
        )

    def cancel(self) -> None:
        if self.is_settled:
            raise JobStateError(self.id, self.state, "cancel")
        self.state = JobState.CANCELLED
        self.settled_at = _utcnow()

    def defer(self) -> None:
        """Return a running job to the queue and reset its attempt count."""
        if self.state is not JobState.RUNNING:
            raise JobStateError(self.id, self.state, "defer")
        self.state = JobState.PENDING
        self.attempts = 0
        self.started_at = None

    def on(self, event: JobEventType, listener: JobListener) -> None:
        self._listeners.setdefault(event, []).append(listener)

    def _emit(self, event: JobEventType) -> None:
        for listener in self._listeners.get(event, []):
            listener(self)
