import json
import os
import plistlib
import struct
import sys
from pathlib import Path

import pytest
from typer.testing import CliRunner

from mobilyze import __version__
from mobilyze.cli.main import app
from mobilyze.utils import config

cli = CliRunner()


@pytest.fixture
def workdir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def ready_tools(provisioned_tools, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv(config.TOOLS_DIR_ENV_VAR, str(provisioned_tools.tools_dir))
    return provisioned_tools


@pytest.mark.parametrize("args", [[], ["app.apk"], ["app.apk", "out", "extra"]])
def test_wrong_argument_count_prints_usage(args, runner, workdir):
    result = cli.invoke(app, args)

    assert result.exit_code == 0
    assert "Usage" in result.output
    assert runner.calls == []
    assert list(workdir.iterdir()) == []


@pytest.mark.parametrize("flag", ["-h", "--help"])
def test_help_flag(flag, runner, workdir):
    result = cli.invoke(app, [flag])

    assert result.exit_code == 0
    assert "Usage" in result.output
    assert runner.calls == []
    assert list(workdir.iterdir()) == []


def test_version():
    result = cli.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


@pytest.mark.parametrize("name", ["notes.txt", "archive.zip", "app"])
def test_unsupported_format(name, runner, on_path, workdir):
    result = cli.invoke(app, [name, "out"])

    assert result.exit_code == 0
    assert result.output.count("Unsupported file format") == 1
    assert runner.calls == []
    assert not (workdir / "tools").exists()
    assert not (workdir / "out").exists()


def test_apk_scenario(runner, on_path, ready_tools, make_package, workdir):
    make_package(workdir / "sample.apk", {"classes.dex": b"dex\n035"})

    result = cli.invoke(app, ["sample.apk", "out/"])

    assert result.exit_code == 0, result.output
    assert (workdir / "out" / "classes.dex").is_file()
    assert (workdir / "out" / "apktool-output").is_dir()
    assert (workdir / "out" / "jadx-output").is_dir()
    assert "Android APK analysis completed successfully" in result.output
    assert runner.programs == ["unzip", "java", "jadx"]


def test_ipa_scenario(runner, on_path, ready_tools, make_package, workdir):
    on_path.add("class-dump")
    executable = struct.pack("<IiiIIIII", 0xFEEDFACF, 0x0100000C, 0, 2, 0, 0, 0, 0)
    make_package(
        workdir / "app.ipa",
        {
            "Payload/Demo.app/Info.plist": plistlib.dumps({"CFBundleExecutable": "Demo"}),
            "Payload/Demo.app/Demo": executable,
        },
    )

    result = cli.invoke(app, ["app.ipa", "out"])

    assert result.exit_code == 0, result.output
    headers = workdir / "out" / "headers"
    assert headers.is_dir()
    assert any(headers.iterdir())
    assert "iOS IPA analysis completed successfully" in result.output


def test_command_failure_shows_generic_error(runner, on_path, ready_tools, make_package, workdir):
    make_package(workdir / "sample.apk", {"classes.dex": b"dex"})
    runner.fail("jadx", 1, "java.lang.OutOfMemoryError")

    result = cli.invoke(app, ["sample.apk", "out"])

    assert result.exit_code == 1
    assert isinstance(result.exception, SystemExit)
    assert "An error occurred" in result.output
    assert "Traceback" not in result.output
    assert (workdir / "out" / "apktool-output").is_dir()


def test_missing_package_shows_generic_error(runner, on_path, ready_tools, workdir):
    result = cli.invoke(app, ["missing.ipa", "out"])

    assert result.exit_code == 1
    assert "An error occurred" in result.output


def test_tools_dir_option(runner, on_path, make_package, workdir, monkeypatch):
    monkeypatch.setattr(
        "mobilyze.core.provisioner.download",
        lambda url, path: path.write_bytes(b"jar") and path,
    )
    make_package(workdir / "sample.apk", {"classes.dex": b"dex"})

    result = cli.invoke(app, ["sample.apk", "out", "--tools-dir", "custom-tools"])

    assert result.exit_code == 0, result.output
    assert (workdir / "custom-tools" / "Apktool" / "apktool_2.9.3.jar").is_file()
    assert (workdir / "custom-tools" / "frida").is_dir()
    assert (workdir / "custom-tools" / "jadx" / "build" / "jadx" / "bin" / "jadx").is_file()
    assert not (workdir / "tools").exists()


def test_json_report(runner, on_path, ready_tools, make_package, workdir):
    make_package(workdir / "sample.apk", {"classes.dex": b"dex"})

    result = cli.invoke(app, ["sample.apk", "out", "--json"])

    assert result.exit_code == 0, result.output
    report = json.loads(result.output)
    assert report["kind"] == "android"
    assert report["success"] is True
    assert [stage["name"] for stage in report["stages"]] == ["provision", "extract", "analyze"]


def test_json_report_on_failure(runner, on_path, ready_tools, make_package, workdir):
    make_package(workdir / "sample.apk", {"classes.dex": b"dex"})
    runner.fail("java")

    result = cli.invoke(app, ["sample.apk", "out", "--json"])

    assert result.exit_code == 1
    report = json.loads(result.output)
    assert report["success"] is False
    assert report["stages"][-1] == {
        "name": "analyze",
        "success": False,
        "error_kind": "analysis",
        "message": report["stages"][-1]["message"],
        "outputs": [],
    }


def test_json_report_for_unsupported_carries_notice(runner, on_path, workdir):
    result = cli.invoke(app, ["notes.txt", "out", "--json"])

    assert result.exit_code == 0
    report = json.loads(result.output)
    assert report["kind"] == "unsupported"
    assert report["stages"] == []
    assert report["notice"].startswith("Unsupported file format")
    assert result.output.count("Unsupported file format") == 1
    assert runner.calls == []


@pytest.mark.skipif(sys.platform == "win32", reason="needs a POSIX shell script on PATH")
def test_undecodable_tool_output_reaches_generic_error(ready_tools, make_package, workdir, monkeypatch):
    bin_dir = workdir / "bin"
    bin_dir.mkdir()
    unzip = bin_dir / "unzip"
    unzip.write_text(
        "#!/bin/sh\n"
        "printf 'inflating: res/\\377\\376name.png\\n'\n"
        "exit 2\n"
    )
    unzip.chmod(0o755)
    monkeypatch.setenv("PATH", f"{bin_dir}{os.pathsep}{os.environ.get('PATH', '')}")
    make_package(workdir / "sample.apk", {"classes.dex": b"dex"})

    result = cli.invoke(app, ["sample.apk", "out"])

    assert result.exit_code == 1
    assert isinstance(result.exception, SystemExit)
    assert "An error occurred" in result.output
    assert "Traceback" not in result.output
