"""Shared fixtures: a fake subprocess runner and a fake PATH."""

import shutil
import subprocess
import zipfile
from collections.abc import Callable
from pathlib import Path

import pytest

from mobilyze.models.tools import Toolchain
from mobilyze.utils import config
from mobilyze.utils.output import console
from mobilyze.utils.platform import Platform

Handler = Callable[[list[str], Path | None], "str | tuple[int, str]"]


def _option_value(command: list[str], flag: str) -> Path:
    return Path(command[command.index(flag) + 1])


def _git(command: list[str], cwd: Path | None) -> str:
    dest = Path(command[-1])
    dest.mkdir(parents=True)
    (dest / "README.md").write_text("cloned")
    return f"Cloning into '{dest.name}'..."


def _unzip(command: list[str], cwd: Path | None) -> tuple[int, str]:
    archive = Path(command[2])
    dest = _option_value(command, "-d")
    try:
        with zipfile.ZipFile(archive) as zf:
            zf.extractall(dest)
    except zipfile.BadZipFile:
        return 9, f"End-of-central-directory signature not found in {archive}"
    return 0, f"Archive:  {archive}"


def _apktool(command: list[str], cwd: Path | None) -> str:
    out = _option_value(command, "-o")
    (out / "smali").mkdir(parents=True, exist_ok=True)
    (out / "apktool.yml").write_text("version: 2.9.3\n")
    return "I: Using Apktool 2.9.3 on app.apk"


def _jadx(command: list[str], cwd: Path | None) -> str:
    out = _option_value(command, "-d")
    (out / "sources").mkdir(parents=True, exist_ok=True)
    return "INFO  - done"


def _class_dump(command: list[str], cwd: Path | None) -> str:
    out = _option_value(command, "-o")
    (out / "AppDelegate.h").write_text("@interface AppDelegate : NSObject\n@end\n")
    return ""


def _gradlew(command: list[str], cwd: Path | None) -> str:
    assert cwd is not None
    launcher = Path(cwd) / "build" / "jadx" / "bin" / "jadx"
    launcher.parent.mkdir(parents=True)
    launcher.write_text("#!/bin/sh\n")
    return "BUILD SUCCESSFUL"


class FakeRunner:
    """Stands in for subprocess.run and records every command."""

    def __init__(self) -> None:
        self.calls: list[tuple[list[str], Path | None]] = []
        self.handlers: dict[str, Handler] = {
            "git": _git,
            "unzip": _unzip,
            "java": _apktool,
            "apktool": _apktool,
            "jadx": _jadx,
            "class-dump": _class_dump,
            "gradlew": _gradlew,
        }

    def on(self, program: str, handler: Handler) -> None:
        self.handlers[program] = handler

    def fail(self, program: str, returncode: int = 1, output: str = "boom") -> None:
        self.handlers[program] = lambda command, cwd: (returncode, output)

    @property
    def commands(self) -> list[list[str]]:
        return [command for command, _ in self.calls]

    @property
    def programs(self) -> list[str]:
        return [Path(command[0]).name for command in self.commands]

    def __call__(self, command, *, stdout=None, stderr=None, stdin=None,
                 encoding=None, errors=None, timeout=None, cwd=None):
        command = list(command)
        cwd_path = Path(cwd) if cwd is not None else None
        self.calls.append((command, cwd_path))

        handler = self.handlers.get(Path(command[0]).name)
        result = handler(command, cwd_path) if handler else ""
        returncode, output = result if isinstance(result, tuple) else (0, result)

        return subprocess.CompletedProcess(
            command,
            returncode,
            stdout=output,
            stderr=None if stderr == subprocess.STDOUT else "",
        )


@pytest.fixture
def runner(monkeypatch: pytest.MonkeyPatch) -> FakeRunner:
    fake = FakeRunner()
    monkeypatch.setattr("mobilyze.utils.process.subprocess.run", fake)
    return fake


@pytest.fixture
def on_path(monkeypatch: pytest.MonkeyPatch) -> set[str]:
    """Executables visible to shutil.which; mutate the set in a test."""
    available = {"git", "unzip", "java"}

    def fake_which(name: str, *args, **kwargs) -> str | None:
        return f"/usr/bin/{name}" if name in available else None

    monkeypatch.setattr(shutil, "which", fake_which)
    return available


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Point the config file at a temp location and reset cached state."""
    monkeypatch.setattr(config, "CONFIG_FILE", tmp_path / "config" / "config.json")
    monkeypatch.delenv(config.TOOLS_DIR_ENV_VAR, raising=False)
    config.reload_config()
    console.set_json_mode(False)
    yield
    config.reload_config()
    console.set_json_mode(False)


@pytest.fixture
def toolchain(tmp_path: Path) -> Toolchain:
    return Toolchain(
        platform=Platform.LINUX,
        tools_dir=tmp_path / "tools",
        apktool_version="2.9.3",
    )


@pytest.fixture
def make_package() -> Callable[[Path, dict[str, bytes]], Path]:
    """Factory writing a zip archive (APK/IPA) with the given entries."""

    def _make(path: Path, entries: dict[str, bytes]) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        with zipfile.ZipFile(path, "w") as zf:
            for name, data in entries.items():
                zf.writestr(name, data)
        return path

    return _make


@pytest.fixture
def provisioned_tools(toolchain: Toolchain) -> Toolchain:
    """Lay out a tools directory that needs no provisioning."""
    toolchain.apktool_jar.parent.mkdir(parents=True)
    toolchain.apktool_jar.write_bytes(b"PK\x03\x04jar")
    (toolchain.tools_dir / "frida").mkdir()
    toolchain.jadx_launcher.parent.mkdir(parents=True)
    toolchain.jadx_launcher.write_text("#!/bin/sh\n")
    return toolchain
