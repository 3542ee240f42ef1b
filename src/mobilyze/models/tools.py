"""Pydantic models for the external analysis toolchain."""

from pathlib import Path

from pydantic import BaseModel, ConfigDict

from mobilyze.utils.platform import Platform


class ToolSpec(BaseModel):
    """Static description of a tool the provisioner manages."""

    model_config = ConfigDict(frozen=True)

    name: str
    """Display name (e.g., 'Apktool')."""

    repo_url: str
    """Git remote cloned when the tool is missing."""

    directory: str
    """Directory name under the tools directory."""

    brew_formula: str | None = None
    """Homebrew formula used on macOS."""

    brew_replaces_clone: bool = False
    """On macOS with Homebrew, install the formula instead of cloning."""

    lookup_on_path: str | None = None
    """Executable whose presence on PATH counts as installed."""

    release_jar: bool = False
    """Download the pinned release jar into the clone."""

    build_after_clone: bool = False
    """Build the clone with its gradle wrapper (Homebrew formula on macOS)."""


class ToolStatus(BaseModel):
    """Provisioning outcome for one tool."""

    name: str
    path: Path | None = None
    present: bool
    """Whether the tool was already available before this run."""

    action: str = "present"
    """One of: present, installed, cloned, built."""


class ProvisionReport(BaseModel):
    """Result of a provisioning pass."""

    tools: list[ToolStatus]

    @property
    def installed(self) -> list[str]:
        """Names of tools that required network work during this run."""
        return [tool.name for tool in self.tools if not tool.present]

    def get(self, name: str) -> ToolStatus | None:
        for tool in self.tools:
            if tool.name == name:
                return tool
        return None


class Toolchain(BaseModel):
    """Run-wide context shared by every stage."""

    model_config = ConfigDict(frozen=True)

    platform: Platform
    tools_dir: Path
    apktool_version: str
    clone_depth: int = 1
    """Depth passed to git clone; 0 clones full history."""

    @property
    def apktool_jar_name(self) -> str:
        return f"apktool_{self.apktool_version}.jar"

    @property
    def apktool_jar_url(self) -> str:
        return (
            "https://github.com/iBotPeaches/Apktool/releases/download/"
            f"v{self.apktool_version}/{self.apktool_jar_name}"
        )

    @property
    def apktool_jar(self) -> Path:
        """Location of the downloaded apktool jar."""
        return self.tools_dir / "Apktool" / self.apktool_jar_name

    @property
    def jadx_launcher(self) -> Path:
        """Launcher script produced by `gradlew dist` in the jadx clone."""
        script = "jadx.bat" if self.platform == Platform.WIN else "jadx"
        return self.tools_dir / "jadx" / "build" / "jadx" / "bin" / script
