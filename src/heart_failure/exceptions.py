"""Error taxonomy for the heart-failure workflow.

Every fatal error carries the name of the stage that raised it so the
orchestrator can report where a run stopped.
"""

from typing import Optional


class PipelineError(Exception):
    """Base class for fatal workflow errors."""

    default_stage = "pipeline"

    def __init__(self, message: str, stage: Optional[str] = None):
        self.stage = stage or self.default_stage
        self.message = message
        super().__init__(f"[{self.stage}] {message}")


class SchemaError(PipelineError):
    """A required column is missing from the input table."""

    default_stage = "prepare"


class DataIntegrityError(PipelineError):
    """A value lies outside its expected domain (e.g. sex not in {0, 1})."""

    default_stage = "prepare"


class InvalidParameterError(PipelineError, ValueError):
    """A run parameter (fold count, split proportion, grid) is unusable."""

    default_stage = "config"


class NoValidCandidateError(PipelineError):
    """Tuning produced no penalty value with a defined score."""

    default_stage = "select"
