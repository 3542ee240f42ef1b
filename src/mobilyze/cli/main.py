"""Root CLI application for mobilyze."""

from pathlib import Path
from typing import NoReturn

import typer
from rich.markup import escape

from mobilyze import __version__
from mobilyze.core.analyzer import MobileAppAnalyzer
from mobilyze.exceptions import MobilyzeError
from mobilyze.models.request import AnalysisRequest
from mobilyze.utils.config import build_toolchain
from mobilyze.utils.output import console

USAGE = "Usage: mobilyze <file_path> <output_dir>"

# Extra positionals are collected so a wrong count prints usage instead of failing
CONTEXT_SETTINGS = {
    "help_option_names": ["-h", "--help"],
    "allow_extra_args": True,
}

app = typer.Typer(
    name="mobilyze",
    help="Extract APK/IPA packages and run static analysis tools on them.",
    add_completion=False,
    context_settings=CONTEXT_SETTINGS,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"mobilyze {__version__}")
        raise typer.Exit()


def _usage(ctx: typer.Context) -> NoReturn:
    """Print usage and exit without error."""
    typer.echo(USAGE)
    typer.echo(ctx.get_help())
    raise typer.Exit()


@app.command(context_settings=CONTEXT_SETTINGS)
def main(
    ctx: typer.Context,
    file_path: Path | None = typer.Argument(
        None,
        help="Path to the .apk or .ipa file to analyze.",
        show_default=False,
    ),
    output_dir: Path | None = typer.Argument(
        None,
        help="Directory for extracted contents and analyzer output.",
        show_default=False,
    ),
    tools_dir: Path | None = typer.Option(
        None,
        "--tools-dir",
        "-t",
        help="Where analysis tools are installed (default: ./tools).",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        "-j",
        help="Output the analysis report as JSON.",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """Analyze an Android APK or iOS IPA.

    APKs are unpacked, disassembled to smali (apktool) and decompiled to Java
    (jadx). IPAs are unpacked and the main executable's Objective-C headers
    are dumped (class-dump). Missing tools are installed into the tools
    directory first.

    Output structure:

        <output_dir>/
        ├── apktool-output/   # smali + resources (APK)
        ├── jadx-output/      # Java source (APK)
        └── headers/          # Objective-C headers (IPA)

    Examples:

        mobilyze app.apk ./out

        mobilyze app.ipa ./out --tools-dir ~/.mobilyze/tools
    """
    # Exactly two positionals; anything else is a usage request
    if file_path is None or output_dir is None or ctx.args:
        _usage(ctx)

    console.set_json_mode(json_output)

    request = AnalysisRequest(file_path=file_path, output_dir=output_dir)
    analyzer = MobileAppAnalyzer(request, build_toolchain(tools_dir))

    try:
        report = analyzer.run()
    except MobilyzeError as e:
        if json_output:
            typer.echo(analyzer.report.model_dump_json(indent=2))
        console.print_error(f"An error occurred: {escape(str(e))}")
        raise typer.Exit(1) from None

    if json_output:
        typer.echo(report.model_dump_json(indent=2))


if __name__ == "__main__":
    app()
