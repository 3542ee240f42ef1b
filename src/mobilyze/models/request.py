"""Pydantic models for analysis requests."""

from enum import StrEnum
from pathlib import Path

from pydantic import BaseModel, ConfigDict

ANDROID_EXTENSION = ".apk"
IOS_EXTENSION = ".ipa"


class PackageKind(StrEnum):
    """Kind of mobile package, derived from the file extension."""

    ANDROID = "android"
    IOS = "ios"
    UNSUPPORTED = "unsupported"


class AnalysisRequest(BaseModel):
    """Input file and output directory for one analysis run."""

    model_config = ConfigDict(frozen=True)

    file_path: Path
    """Path to the .apk or .ipa package."""

    output_dir: Path
    """Directory receiving the extracted package and analyzer output."""

    @property
    def kind(self) -> PackageKind:
        """Classify the package by its extension."""
        name = self.file_path.name.lower()
        if name.endswith(ANDROID_EXTENSION):
            return PackageKind.ANDROID
        if name.endswith(IOS_EXTENSION):
            return PackageKind.IOS
        return PackageKind.UNSUPPORTED
