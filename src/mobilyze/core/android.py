"""Android analysis: smali disassembly with apktool and Java decompilation with jadx."""

import shutil
from pathlib import Path

from mobilyze.exceptions import AnalysisError, MobilyzeError, ToolNotFoundError
from mobilyze.models.report import CommandOutput
from mobilyze.models.tools import Toolchain
from mobilyze.utils.deps import TOOL_INSTALL_HINTS, require
from mobilyze.utils.process import run_command

APKTOOL_OUTPUT = "apktool-output"
JADX_OUTPUT = "jadx-output"


class AndroidAnalyzer:
    """Runs apktool and jadx against an APK."""

    def __init__(self, apk_path: Path, output_dir: Path, toolchain: Toolchain):
        """Initialize Android analyzer.

        Args:
            apk_path: Path to the APK file.
            output_dir: Root output directory; tool output goes to subdirectories.
            toolchain: Run-wide context used to locate provisioned tools.
        """
        self.apk_path = apk_path
        self.output_dir = output_dir
        self.toolchain = toolchain

    @property
    def apktool_dir(self) -> Path:
        return self.output_dir / APKTOOL_OUTPUT

    @property
    def jadx_dir(self) -> Path:
        return self.output_dir / JADX_OUTPUT

    def apktool_command(self) -> list[str]:
        """Resolve how to launch apktool.

        Prefers the pinned jar under the tools directory, then an apktool
        found on PATH (e.g. installed with Homebrew).

        Raises:
            ToolNotFoundError: If neither is available.
        """
        jar = self.toolchain.apktool_jar
        if jar.is_file():
            require("java")
            return ["java", "-jar", str(jar)]

        wrapper = shutil.which("apktool")
        if wrapper:
            return [wrapper]

        raise ToolNotFoundError("apktool", TOOL_INSTALL_HINTS["apktool"])

    def jadx_command(self) -> list[str]:
        """Resolve how to launch jadx: PATH first, then the built clone.

        Raises:
            ToolNotFoundError: If jadx is neither on PATH nor built.
        """
        path = shutil.which("jadx")
        if path:
            return [path]

        launcher = self.toolchain.jadx_launcher
        if launcher.is_file():
            return [str(launcher)]

        raise ToolNotFoundError("jadx", TOOL_INSTALL_HINTS["jadx"])

    def run_apktool(self) -> CommandOutput:
        """Disassemble the APK to smali and resources."""
        # apktool d <apk> -o <output> -f
        # -f: force overwrite existing directory
        cmd = self.apktool_command() + [
            "d",
            str(self.apk_path),
            "-o",
            str(self.apktool_dir),
            "-f",
        ]
        return run_command(cmd)

    def run_jadx(self) -> CommandOutput:
        """Decompile the APK to Java source."""
        # No -r (skip resources) or -e (gradle export)
        cmd = self.jadx_command() + ["-d", str(self.jadx_dir), str(self.apk_path)]
        return run_command(cmd)

    def analyze(self) -> CommandOutput:
        """Run apktool then jadx.

        Both steps are always attempted. If either fails, the failure is
        raised after the second step has run.

        Returns:
            Transcript of the last command (jadx).

        Raises:
            AnalysisError: If one or both steps failed.
        """
        self.output_dir.mkdir(parents=True, exist_ok=True)

        failures: list[str] = []
        outputs: list[CommandOutput] = []

        for name, step in (("apktool", self.run_apktool), ("jadx", self.run_jadx)):
            try:
                outputs.append(step())
            except (MobilyzeError, OSError) as e:
                failures.append(f"{name}: {e}")

        if failures:
            raise AnalysisError("Android analysis failed\n" + "\n".join(failures))

        return outputs[-1]
