"""Analysis pipeline: provision tools, extract the package, run the analyzers."""

from collections.abc import Callable
from contextlib import nullcontext
from pathlib import Path

from mobilyze.core.android import AndroidAnalyzer
from mobilyze.core.extractor import PackageExtractor
from mobilyze.core.ios import IOSAnalyzer
from mobilyze.core.provisioner import ToolProvisioner
from mobilyze.exceptions import (
    AnalysisError,
    ExtractionError,
    MobilyzeError,
    ProvisionError,
)
from mobilyze.models.report import AnalysisReport, StageResult
from mobilyze.models.request import AnalysisRequest, PackageKind
from mobilyze.models.tools import Toolchain
from mobilyze.utils.output import console

UNSUPPORTED_MESSAGE = "Unsupported file format. Please provide an APK or IPA file."


class MobileAppAnalyzer:
    """Runs the full pipeline for one APK or IPA.

    Stages run strictly in order: provision -> extract -> analyze. The first
    failing stage ends the run; its error propagates to the caller after
    being recorded in `report`.
    """

    def __init__(
        self,
        request: AnalysisRequest,
        toolchain: Toolchain,
        provisioner: ToolProvisioner | None = None,
    ):
        """Initialize analyzer.

        Args:
            request: Input package and output directory.
            toolchain: Run-wide context (platform, tools dir, versions).
            provisioner: Tool provisioner. Defaults to one built from toolchain.
        """
        self.request = request
        self.toolchain = toolchain
        self.provisioner = provisioner or ToolProvisioner(toolchain)
        self.report = AnalysisReport(request=request, kind=request.kind)

    def _stage(
        self,
        name: str,
        action: Callable[[], list[Path]],
        error_cls: type[MobilyzeError],
    ) -> None:
        """Run one stage, recording its outcome in the report."""
        spinner = (
            console.status(f"{name.capitalize()}...")
            if not console.json_mode
            else nullcontext()
        )
        try:
            with spinner:
                outputs = action()
        except MobilyzeError as e:
            self._record_failure(name, e)
            raise
        except Exception as e:
            # OSError, or anything raised from inside a third-party parser
            wrapped = error_cls(f"{name} failed: {e}")
            self._record_failure(name, wrapped)
            raise wrapped from e

        self.report.stages.append(
            StageResult(name=name, success=True, outputs=[str(p) for p in outputs])
        )

    def _record_failure(self, name: str, error: MobilyzeError) -> None:
        self.report.stages.append(
            StageResult(
                name=name,
                success=False,
                error_kind=error.kind,
                message=str(error),
            )
        )

    def provision(self) -> list[Path]:
        report = self.provisioner.provision()
        return [tool.path for tool in report.tools if tool.path is not None]

    def extract(self) -> list[Path]:
        PackageExtractor(self.request.file_path, self.request.output_dir).extract()
        return [self.request.output_dir]

    def analyze_android(self) -> list[Path]:
        analyzer = AndroidAnalyzer(
            self.request.file_path, self.request.output_dir, self.toolchain
        )
        analyzer.analyze()
        return [analyzer.apktool_dir, analyzer.jadx_dir]

    def analyze_ios(self) -> list[Path]:
        analyzer = IOSAnalyzer(self.request.output_dir)
        analyzer.analyze()
        return [analyzer.headers_dir]

    def run(self) -> AnalysisReport:
        """Run the pipeline for the request's package kind.

        Unsupported extensions print a notice and do nothing else.

        Returns:
            AnalysisReport with one StageResult per stage that ran.

        Raises:
            MobilyzeError: From the first failing stage.
        """
        kind = self.request.kind

        if kind == PackageKind.UNSUPPORTED:
            console.print_warning(UNSUPPORTED_MESSAGE)
            self.report.notice = UNSUPPORTED_MESSAGE
            return self.report

        self._stage("provision", self.provision, ProvisionError)
        self._stage("extract", self.extract, ExtractionError)

        if kind == PackageKind.ANDROID:
            self._stage("analyze", self.analyze_android, AnalysisError)
            console.print_success("Android APK analysis completed successfully.")
        else:
            self._stage("analyze", self.analyze_ios, AnalysisError)
            console.print_success("iOS IPA analysis completed successfully.")

        return self.report
