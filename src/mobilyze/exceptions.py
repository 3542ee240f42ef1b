"""Typed exception hierarchy for mobilyze."""

from mobilyze.models.report import ErrorKind


class MobilyzeError(Exception):
    """Base exception for all mobilyze errors."""

    kind: ErrorKind = ErrorKind.ANALYSIS


class ToolNotFoundError(MobilyzeError):
    """Raised when a required external tool is not installed."""

    kind = ErrorKind.TOOL_MISSING

    def __init__(self, tool: str, install_hint: str | None = None):
        self.tool = tool
        self.install_hint = install_hint
        message = f"Required tool not found: {tool}"
        if install_hint:
            message += f"\nInstall: {install_hint}"
        super().__init__(message)


class ProcessError(MobilyzeError):
    """Raised when a subprocess command fails."""

    kind = ErrorKind.PROCESS

    def __init__(self, command: list[str], returncode: int, stderr: str):
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        cmd_str = " ".join(command)
        super().__init__(f"Command failed (exit {returncode}): {cmd_str}\n{stderr}")


class DownloadError(MobilyzeError):
    """Raised when fetching a release artifact fails."""

    kind = ErrorKind.DOWNLOAD


class ProvisionError(MobilyzeError):
    """Raised when installing or cloning an analysis tool fails."""

    kind = ErrorKind.PROCESS


class ExtractionError(MobilyzeError):
    """Raised when a package cannot be unpacked."""

    kind = ErrorKind.EXTRACTION


class AnalysisError(MobilyzeError):
    """Raised when an analyzer step fails."""

    kind = ErrorKind.ANALYSIS


class BinaryNotFoundError(AnalysisError):
    """Raised when the main Mach-O executable cannot be located in an IPA."""

    kind = ErrorKind.BINARY_NOT_FOUND
