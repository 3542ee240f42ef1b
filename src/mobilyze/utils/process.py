"""Subprocess wrapper for all external tool invocations."""

import subprocess
from dataclasses import dataclass
from pathlib import Path

from mobilyze.exceptions import ProcessError
from mobilyze.models.report import CommandOutput
from mobilyze.utils.output import console


@dataclass
class ProcessResult:
    """Result of a subprocess execution."""

    command: list[str]
    returncode: int
    stdout: str
    stderr: str

    @property
    def success(self) -> bool:
        """Check if the command succeeded."""
        return self.returncode == 0


def run_tool(
    command: list[str],
    *,
    check: bool = True,
    capture_output: bool = True,
    merge_stderr: bool = False,
    timeout: float | None = None,
    cwd: str | Path | None = None,
) -> ProcessResult:
    """Run an external tool command.

    Args:
        command: Command and arguments to run.
        check: If True, raise ProcessError on non-zero exit.
        capture_output: If True, capture stdout and stderr.
        merge_stderr: If True, interleave stderr into stdout (stderr is "").
        timeout: Optional timeout in seconds.
        cwd: Working directory for the command.

    Returns:
        ProcessResult with command output, decoded as UTF-8 with undecodable
        bytes replaced.

    Raises:
        ProcessError: If check=True and command returns non-zero, or if the
            executable is missing, not executable or times out.
    """
    stdout = subprocess.PIPE if capture_output else None
    if not capture_output:
        stderr = None
    elif merge_stderr:
        stderr = subprocess.STDOUT
    else:
        stderr = subprocess.PIPE

    try:
        result = subprocess.run(
            command,
            stdout=stdout,
            stderr=stderr,
            stdin=subprocess.DEVNULL,
            encoding="utf-8",
            errors="replace",
            timeout=timeout,
            cwd=cwd,
        )
    except subprocess.TimeoutExpired as e:
        raise ProcessError(command, -1, f"Command timed out after {timeout}s") from e
    except FileNotFoundError as e:
        raise ProcessError(command, -1, f"Command not found: {command[0]}") from e
    except OSError as e:
        raise ProcessError(command, -1, f"Cannot execute {command[0]}: {e}") from e

    proc_result = ProcessResult(
        command=command,
        returncode=result.returncode,
        stdout=result.stdout or "",
        stderr=result.stderr or "",
    )

    if check and not proc_result.success:
        error_text = proc_result.stderr or proc_result.stdout
        raise ProcessError(command, result.returncode, error_text)

    return proc_result


def run_command(
    command: list[str],
    *,
    check: bool = True,
    cwd: str | Path | None = None,
) -> CommandOutput:
    """Echo a command, run it, and print its combined output.

    Returns:
        CommandOutput transcript (stdout and stderr interleaved).

    Raises:
        ProcessError: If check=True and the command fails.
    """
    console.print_command(command)

    try:
        result = run_tool(command, check=check, merge_stderr=True, cwd=cwd)
    except ProcessError as e:
        console.print_transcript(e.stderr)
        raise

    console.print_transcript(result.stdout)
    return CommandOutput(
        command=command,
        returncode=result.returncode,
        output=result.stdout,
    )
