"""Project records and the store that tracks them.

Each generation request is tracked by a ``ProjectRecord``.  Records are
immutable snapshots: every change produces a new record with ``version``
incremented, and the store swaps the whole snapshot under a lock.  A reader
therefore always sees one consistent (status, progress, logs, files) state.
"""

from __future__ import annotations

import threading
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Protocol

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from rahl.errors import GenerationError, ProjectNotFoundError
from rahl.parser.models import AppAnalysis, GeneratedProject


# ---------------------------------------------------------------------------
# Stages
# ---------------------------------------------------------------------------

class Stage(str, Enum):
    """Ordered lifecycle of a generation request."""
    QUEUED = "queued"
    ANALYZING = "analyzing"
    GENERATING = "generating"
    CODING = "coding"
    BUILDING = "building"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def progress(self) -> int:
        return STAGE_PROGRESS.get(self, 0)

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STAGES


STAGE_PROGRESS: dict[Stage, int] = {
    Stage.QUEUED: 0,
    Stage.ANALYZING: 10,
    Stage.GENERATING: 30,
    Stage.CODING: 60,
    Stage.BUILDING: 85,
    Stage.COMPLETED: 100,
}

PIPELINE_STAGES: tuple[Stage, ...] = (
    Stage.QUEUED,
    Stage.ANALYZING,
    Stage.GENERATING,
    Stage.CODING,
    Stage.BUILDING,
    Stage.COMPLETED,
)

TERMINAL_STAGES: frozenset[Stage] = frozenset(
    {Stage.COMPLETED, Stage.FAILED, Stage.CANCELLED}
)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Record
# ---------------------------------------------------------------------------

class ProjectRecord(BaseModel):
    """Snapshot of one generation request."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    project_id: str
    description: str
    app_name: str
    status: Stage = Stage.QUEUED
    progress: int = Field(default=0, ge=0, le=100)
    logs: tuple[str, ...] = ()
    analysis: AppAnalysis | None = None
    project: GeneratedProject | None = None
    error: str | None = None
    version: int = 0
    created_at: str = Field(default_factory=_now)
    updated_at: str = Field(default_factory=_now)

    def advance(self, stage: Stage, log: str | None = None, **changes: object) -> "ProjectRecord":
        """Return a copy moved forward to *stage*.

        Failure and cancellation are reachable from any non-terminal stage and
        keep the current progress; pipeline stages must move strictly forward.

        Raises:
            GenerationError: On a backwards or post-terminal transition.
        """
        if self.status.is_terminal:
            raise GenerationError(
                stage.value, f"record already {self.status.value}"
            )
        if stage in PIPELINE_STAGES:
            if PIPELINE_STAGES.index(stage) <= PIPELINE_STAGES.index(self.status):
                raise GenerationError(
                    stage.value, f"cannot move back from {self.status.value}"
                )
            progress = stage.progress
        else:
            progress = self.progress

        update: dict[str, object] = {
            "status": stage,
            "progress": progress,
            "version": self.version + 1,
            "updated_at": _now(),
            **changes,
        }
        if log:
            update["logs"] = (*self.logs, log)
        return self.model_copy(update=update)

    def to_status(self) -> dict[str, object]:
        """The polling payload served over HTTP."""
        return {
            "projectId": self.project_id,
            "appName": self.app_name,
            "status": self.status.value,
            "progress": self.progress,
            "logs": list(self.logs),
            "analysis": self.analysis.to_wire() if self.analysis else None,
            "error": self.error,
            "version": self.version,
            "updatedAt": self.updated_at,
        }


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------

class ProjectStore(Protocol):
    """Storage seam for project records; swap in a durable backend here."""

    def create(self, project_id: str, record: ProjectRecord) -> ProjectRecord: ...

    def get(self, project_id: str) -> ProjectRecord | None: ...

    def update(
        self, project_id: str, fn: Callable[[ProjectRecord], ProjectRecord]
    ) -> ProjectRecord: ...

    def __contains__(self, project_id: object) -> bool: ...


class InMemoryProjectStore:
    """Process-local ``ProjectStore`` backed by a lock-guarded dict."""

    def __init__(self) -> None:
        self._records: dict[str, ProjectRecord] = {}
        self._lock = threading.Lock()

    def create(self, project_id: str, record: ProjectRecord) -> ProjectRecord:
        with self._lock:
            if project_id in self._records:
                raise GenerationError(record.status.value, f"duplicate project id {project_id}")
            self._records[project_id] = record
            return record

    def get(self, project_id: str) -> ProjectRecord | None:
        with self._lock:
            return self._records.get(project_id)

    def update(
        self, project_id: str, fn: Callable[[ProjectRecord], ProjectRecord]
    ) -> ProjectRecord:
        """Replace the record with ``fn(current)`` atomically.

        Raises:
            ProjectNotFoundError: If *project_id* is unknown.
        """
        with self._lock:
            current = self._records.get(project_id)
            if current is None:
                raise ProjectNotFoundError(project_id)
            updated = fn(current)
            self._records[project_id] = updated
            return updated

    def __contains__(self, project_id: object) -> bool:
        with self._lock:
            return project_id in self._records
