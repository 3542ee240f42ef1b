"""iOS analysis: Objective-C header extraction with class-dump."""

from pathlib import Path

from mobilyze.core.macho import find_mach_o_binary
from mobilyze.exceptions import AnalysisError, ProcessError
from mobilyze.models.macho import MachOBinary
from mobilyze.models.report import CommandOutput
from mobilyze.utils.deps import require
from mobilyze.utils.output import console
from mobilyze.utils.process import run_command

HEADERS_OUTPUT = "headers"


class IOSAnalyzer:
    """Runs class-dump against the main executable of an extracted IPA."""

    def __init__(self, output_dir: Path):
        """Initialize iOS analyzer.

        Args:
            output_dir: Directory the IPA was extracted into. Headers are
                written to its `headers/` subdirectory.
        """
        self.output_dir = output_dir

    @property
    def headers_dir(self) -> Path:
        return self.output_dir / HEADERS_OUTPUT

    def locate_binary(self) -> MachOBinary:
        """Find the main Mach-O executable under Payload/*.app."""
        binary = find_mach_o_binary(self.output_dir)

        arch_info = ", ".join(binary.architectures)
        if binary.selected_arch:
            arch_info += f", using {binary.selected_arch}"
        console.print_info(f"Main executable: {binary.path.name} ({arch_info})")

        if binary.encrypted:
            console.print_warning(
                f"{binary.path.name} is FairPlay-encrypted; "
                "class-dump output will be empty until it is decrypted"
            )

        return binary

    def run_class_dump(self, binary: MachOBinary) -> CommandOutput:
        """Write Objective-C headers for a binary into headers/.

        Raises:
            ToolNotFoundError: If class-dump is not installed.
            AnalysisError: If class-dump fails.
        """
        require("class-dump")
        self.headers_dir.mkdir(parents=True, exist_ok=True)

        # class-dump -H -o <dir> [--arch <slice>] <binary>
        cmd = ["class-dump", "-H", "-o", str(self.headers_dir)]
        if binary.selected_arch:
            cmd.extend(["--arch", binary.selected_arch])
        cmd.append(str(binary.path))

        try:
            return run_command(cmd)
        except ProcessError as e:
            raise AnalysisError(f"class-dump failed: {e}") from e

    def analyze(self) -> CommandOutput:
        """Locate the executable and dump its headers."""
        binary = self.locate_binary()
        return self.run_class_dump(binary)
