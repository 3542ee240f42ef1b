"""Package extraction: unpack APK/IPA archives with unzip."""

from pathlib import Path

from mobilyze.exceptions import ExtractionError, ProcessError
from mobilyze.models.report import CommandOutput
from mobilyze.utils.deps import require
from mobilyze.utils.process import run_command

UNZIP_WARNING = 1


class PackageExtractor:
    """Unpacks a zip-format mobile package into an output directory.

    APK and IPA files are both plain zip archives, so both go through the
    same unzip invocation.
    """

    def __init__(self, file_path: Path, output_dir: Path):
        self.file_path = file_path
        self.output_dir = output_dir

    def validate(self) -> None:
        """Validate that the package exists and is a file.

        Raises:
            ExtractionError: If the package is missing.
        """
        if not self.file_path.exists():
            raise ExtractionError(f"Package not found: {self.file_path}")

        if not self.file_path.is_file():
            raise ExtractionError(f"Not a file: {self.file_path}")

    def extract(self) -> CommandOutput:
        """Create the output directory and unzip the package into it.

        Returns:
            Transcript of the unzip command.

        Raises:
            ExtractionError: If the package is missing, corrupt, or unzip fails.
            ToolNotFoundError: If unzip is not installed.
        """
        self.validate()
        require("unzip")

        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ExtractionError(
                f"Cannot create output directory {self.output_dir}: {e}"
            ) from e

        # -o: overwrite without prompting on reruns
        cmd = ["unzip", "-o", str(self.file_path), "-d", str(self.output_dir)]

        try:
            result = run_command(cmd, check=False)
        except ProcessError as e:
            raise ExtractionError(
                f"Failed to extract {self.file_path.name}: {e}"
            ) from e

        # unzip exits 1 for warnings (e.g. extra bytes) after a complete extraction
        if result.returncode > UNZIP_WARNING:
            raise ExtractionError(
                f"Failed to extract {self.file_path.name} "
                f"(unzip exit {result.returncode}):\n{result.output}"
            )

        return result
