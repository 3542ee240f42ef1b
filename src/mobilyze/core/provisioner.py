"""Tool provisioning: make apktool, frida and jadx available locally."""

import shutil
from pathlib import Path

from mobilyze.core.downloader import download
from mobilyze.exceptions import ProcessError, ProvisionError
from mobilyze.models.tools import ProvisionReport, Toolchain, ToolSpec, ToolStatus
from mobilyze.utils.deps import check_tool, require
from mobilyze.utils.output import console
from mobilyze.utils.platform import Platform
from mobilyze.utils.process import run_command

APKTOOL = ToolSpec(
    name="Apktool",
    repo_url="https://github.com/iBotPeaches/Apktool.git",
    directory="Apktool",
    brew_formula="apktool",
    brew_replaces_clone=True,
    lookup_on_path="apktool",
    release_jar=True,
)

FRIDA = ToolSpec(
    name="Frida",
    repo_url="https://github.com/frida/frida.git",
    directory="frida",
)

JADX = ToolSpec(
    name="JADX",
    repo_url="https://github.com/skylot/jadx.git",
    directory="jadx",
    brew_formula="jadx",
    build_after_clone=True,
)

TOOLS: list[ToolSpec] = [APKTOOL, FRIDA, JADX]


class ToolProvisioner:
    """Ensures every analysis tool exists under the tools directory."""

    def __init__(self, toolchain: Toolchain, tools: list[ToolSpec] | None = None):
        """Initialize provisioner.

        Args:
            toolchain: Run-wide context (platform, tools dir, pinned versions).
            tools: Tools to provision. Defaults to TOOLS.
        """
        self.toolchain = toolchain
        self.tools_dir = toolchain.tools_dir
        self.tools = tools if tools is not None else TOOLS

    @property
    def use_brew(self) -> bool:
        """Homebrew is preferred on macOS when it is installed."""
        return self.toolchain.platform == Platform.MAC and check_tool("brew")

    def tool_dir(self, spec: ToolSpec) -> Path:
        return self.tools_dir / spec.directory

    def is_present(self, spec: ToolSpec) -> bool:
        """Check whether a tool is already available.

        Presence is the tool's directory under the tools dir, or for tools
        with a PATH lookup, the executable being on PATH.
        """
        if spec.lookup_on_path and shutil.which(spec.lookup_on_path):
            return True
        return self.tool_dir(spec).exists()

    def provision(self) -> ProvisionReport:
        """Provision all tools, skipping those already present.

        Returns:
            ProvisionReport with one ToolStatus per tool.

        Raises:
            ProvisionError: If a clone, install, build or download fails.
            ToolNotFoundError: If git or brew is required but missing.
        """
        self.tools_dir.mkdir(parents=True, exist_ok=True)
        return ProvisionReport(tools=[self.provision_tool(spec) for spec in self.tools])

    def provision_tool(self, spec: ToolSpec) -> ToolStatus:
        """Provision a single tool."""
        if self.is_present(spec):
            console.print_info(f"{spec.name} already exists")
            return ToolStatus(name=spec.name, path=self.tool_dir(spec), present=True)

        if spec.brew_replaces_clone and spec.brew_formula and self.use_brew:
            self._brew_install(spec)
            return ToolStatus(name=spec.name, present=False, action="installed")

        self._clone(spec)
        action = "cloned"

        if spec.release_jar:
            self._download_release_jar(spec)

        if spec.build_after_clone:
            if spec.brew_formula and self.use_brew:
                self._brew_install(spec)
                action = "installed"
            else:
                self._build(spec)
                action = "built"

        return ToolStatus(
            name=spec.name,
            path=self.tool_dir(spec),
            present=False,
            action=action,
        )

    def _clone(self, spec: ToolSpec) -> None:
        require("git")
        console.print_info(f"Cloning {spec.name}...")

        cmd = ["git", "clone"]
        if self.toolchain.clone_depth > 0:
            cmd.extend(["--depth", str(self.toolchain.clone_depth)])
        cmd.extend([spec.repo_url, str(self.tool_dir(spec))])

        try:
            run_command(cmd)
        except ProcessError as e:
            raise ProvisionError(f"Failed to clone {spec.name}: {e}") from e

    def _brew_install(self, spec: ToolSpec) -> None:
        require("brew")
        console.print_info(f"Installing {spec.name} with Homebrew...")

        try:
            run_command(["brew", "install", str(spec.brew_formula)])
        except ProcessError as e:
            raise ProvisionError(f"brew install {spec.brew_formula} failed: {e}") from e

    def _build(self, spec: ToolSpec) -> None:
        """Run the clone's gradle wrapper (`gradlew dist`)."""
        tool_dir = self.tool_dir(spec)
        if self.toolchain.platform == Platform.WIN:
            cmd = [str(tool_dir / "gradlew.bat"), "dist"]
        else:
            cmd = ["./gradlew", "dist"]

        console.print_info(f"Building {spec.name}...")
        try:
            run_command(cmd, cwd=tool_dir)
        except ProcessError as e:
            raise ProvisionError(f"Failed to build {spec.name}: {e}") from e

    def _download_release_jar(self, spec: ToolSpec) -> Path:
        target = self.tool_dir(spec) / self.toolchain.apktool_jar_name
        url = self.toolchain.apktool_jar_url
        console.print_info(f"Downloading {url}")
        return download(url, target)
