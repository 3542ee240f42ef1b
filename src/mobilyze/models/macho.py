"""Pydantic models for iOS executables."""

from pathlib import Path

from pydantic import BaseModel


class MachOBinary(BaseModel):
    """The main executable located inside an extracted IPA."""

    path: Path
    """Path to the Mach-O executable."""

    bundle: Path
    """The Payload/*.app directory containing it."""

    architectures: list[str]
    """Architecture slices, in file order (e.g., ['armv7', 'arm64'])."""

    selected_arch: str | None = None
    """Slice passed to class-dump when the binary is fat."""

    encrypted: bool = False
    """Whether any slice has a non-zero cryptid (FairPlay)."""

    @property
    def is_fat(self) -> bool:
        return len(self.architectures) > 1
