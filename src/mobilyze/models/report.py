"""Pydantic models for per-stage analysis results."""

from enum import StrEnum

from pydantic import BaseModel, Field, computed_field

from mobilyze.models.request import AnalysisRequest, PackageKind


class ErrorKind(StrEnum):
    """Category of a failed stage."""

    ARGUMENT = "argument"
    UNSUPPORTED = "unsupported"
    TOOL_MISSING = "tool_missing"
    DOWNLOAD = "download"
    PROCESS = "process"
    EXTRACTION = "extraction"
    BINARY_NOT_FOUND = "binary_not_found"
    ANALYSIS = "analysis"


class CommandOutput(BaseModel):
    """Transcript of one external command."""

    command: list[str]
    returncode: int
    output: str
    """Combined stdout and stderr."""

    @property
    def success(self) -> bool:
        return self.returncode == 0


class StageResult(BaseModel):
    """Outcome of one pipeline stage (provision, extract, analyze...)."""

    name: str
    success: bool
    error_kind: ErrorKind | None = None
    message: str | None = None
    outputs: list[str] = Field(default_factory=list)
    """Paths produced by the stage."""


class AnalysisReport(BaseModel):
    """Result of a full analysis run."""

    request: AnalysisRequest
    kind: PackageKind
    stages: list[StageResult] = Field(default_factory=list)
    notice: str | None = None
    """User-facing notice when nothing ran (unsupported package)."""

    @computed_field  # type: ignore[prop-decorator]
    @property
    def success(self) -> bool:
        """True when every stage that ran succeeded."""
        return all(stage.success for stage in self.stages)
