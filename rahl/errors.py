"""Exception hierarchy for RAHL.

The extractor and synthesizer never raise; these errors belong to the
orchestration, store and HTTP layers around them.
"""

from __future__ import annotations


class RahlError(Exception):
    """Base class for every RAHL error."""


class InputValidationError(RahlError):
    """Raised when a generation request is missing its description."""


class ProjectNotFoundError(RahlError):
    """Raised when a project id is not present in the store."""

    def __init__(self, project_id: str) -> None:
        self.project_id = project_id
        super().__init__(f"Project not found: {project_id}")


class GenerationError(RahlError):
    """Raised when a generation stage fails or an illegal transition is attempted."""

    def __init__(self, stage: str, message: str) -> None:
        self.stage = stage
        super().__init__(f"Stage {stage}: {message}")
