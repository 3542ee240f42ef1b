"""Locate the main Mach-O executable inside an extracted IPA."""

import plistlib
import struct
from pathlib import Path

from macholib.MachO import MachO
from macholib.mach_o import encryption_info_command, encryption_info_command_64

from mobilyze.exceptions import BinaryNotFoundError
from mobilyze.models.macho import MachOBinary

PAYLOAD_DIR = "Payload"
APP_SUFFIX = ".app"

# Thin (32/64-bit, either byte order) and fat (32/64-bit) magics
MACHO_MAGICS: frozenset[bytes] = frozenset(
    {
        b"\xfe\xed\xfa\xce",
        b"\xce\xfa\xed\xfe",
        b"\xfe\xed\xfa\xcf",
        b"\xcf\xfa\xed\xfe",
    }
)
FAT_MAGICS: frozenset[bytes] = frozenset(
    {
        b"\xca\xfe\xba\xbe",
        b"\xca\xfe\xba\xbf",
    }
)
# Java class files share 0xCAFEBABE; their "arch count" is the class version (>= 45)
MAX_FAT_ARCHES = 30

CPU_ARCH_ABI64 = 0x01000000
CPU_ARCH_ABI64_32 = 0x02000000
CPU_SUBTYPE_MASK = 0xFF000000
CPU_TYPE_X86 = 7
CPU_TYPE_ARM = 12

# (cputype, cpusubtype) -> name understood by class-dump --arch
ARCH_NAMES: dict[tuple[int, int], str] = {
    (CPU_TYPE_X86, 3): "i386",
    (CPU_TYPE_X86 | CPU_ARCH_ABI64, 3): "x86_64",
    (CPU_TYPE_X86 | CPU_ARCH_ABI64, 8): "x86_64h",
    (CPU_TYPE_ARM, 6): "armv6",
    (CPU_TYPE_ARM, 9): "armv7",
    (CPU_TYPE_ARM, 11): "armv7s",
    (CPU_TYPE_ARM, 12): "armv7k",
    (CPU_TYPE_ARM | CPU_ARCH_ABI64, 0): "arm64",
    (CPU_TYPE_ARM | CPU_ARCH_ABI64, 1): "arm64",
    (CPU_TYPE_ARM | CPU_ARCH_ABI64, 2): "arm64e",
    (CPU_TYPE_ARM | CPU_ARCH_ABI64_32, 1): "arm64_32",
}

ARCH_PREFERENCE: tuple[str, ...] = (
    "arm64",
    "arm64e",
    "armv7s",
    "armv7",
    "x86_64",
    "i386",
)


def is_macho(path: Path) -> bool:
    """Check a file's magic bytes for a thin or fat Mach-O header."""
    try:
        with path.open("rb") as f:
            header = f.read(8)
    except OSError:
        return False

    magic = header[:4]
    if magic in MACHO_MAGICS:
        return True

    if magic in FAT_MAGICS and len(header) == 8:
        nfat_arch = int.from_bytes(header[4:], "big")
        return 0 < nfat_arch <= MAX_FAT_ARCHES

    return False


def arch_name(cputype: int, cpusubtype: int) -> str:
    """Map a Mach-O cpu type/subtype pair to its conventional name."""
    cputype &= 0xFFFFFFFF
    subtype = cpusubtype & ~CPU_SUBTYPE_MASK & 0xFFFFFFFF
    return ARCH_NAMES.get((cputype, subtype), f"cpu{cputype}:{subtype}")


def read_architectures(path: Path) -> tuple[list[str], bool]:
    """Read architecture slices and FairPlay encryption state.

    Returns:
        (architectures in file order, True if any slice has cryptid != 0).

    Raises:
        BinaryNotFoundError: If macholib cannot parse the file.
    """
    try:
        macho = MachO(str(path))
    except (ValueError, OSError, struct.error) as e:
        raise BinaryNotFoundError(f"Not a readable Mach-O binary: {path}: {e}") from e

    architectures: list[str] = []
    encrypted = False

    for header in macho.headers:
        architectures.append(arch_name(header.header.cputype, header.header.cpusubtype))
        for _load_cmd, cmd, _data in header.commands:
            if isinstance(cmd, (encryption_info_command, encryption_info_command_64)):
                if cmd.cryptid != 0:
                    encrypted = True

    return architectures, encrypted


def select_architecture(
    architectures: list[str],
    preference: tuple[str, ...] = ARCH_PREFERENCE,
) -> str | None:
    """Pick the slice to analyze. Thin binaries need no selection."""
    if len(architectures) <= 1:
        return None

    for arch in preference:
        if arch in architectures:
            return arch

    return architectures[0]


def find_app_bundle(extracted_dir: Path) -> Path:
    """Resolve the single Payload/*.app bundle of an extracted IPA.

    Raises:
        BinaryNotFoundError: If Payload is missing, or has zero or several bundles.
    """
    payload = extracted_dir / PAYLOAD_DIR
    if not payload.is_dir():
        raise BinaryNotFoundError(f"No {PAYLOAD_DIR}/ directory in {extracted_dir}")

    bundles = sorted(
        entry
        for entry in payload.iterdir()
        if entry.is_dir() and entry.suffix.lower() == APP_SUFFIX
    )

    if not bundles:
        raise BinaryNotFoundError(f"No *.app bundle found in {payload}")

    if len(bundles) > 1:
        names = ", ".join(bundle.name for bundle in bundles)
        raise BinaryNotFoundError(f"Multiple app bundles in {payload}: {names}")

    return bundles[0]


def _executable_from_info_plist(bundle: Path) -> Path | None:
    info_plist = bundle / "Info.plist"
    if not info_plist.is_file():
        return None

    try:
        with info_plist.open("rb") as f:
            info = plistlib.load(f)
    except (plistlib.InvalidFileException, ValueError, OSError):
        return None

    name = info.get("CFBundleExecutable") if isinstance(info, dict) else None
    if not isinstance(name, str) or not name:
        return None

    candidate = bundle / name
    if candidate.is_file() and is_macho(candidate):
        return candidate

    return None


def find_main_executable(bundle: Path) -> Path:
    """Find the app's main executable, never a framework or plugin binary.

    Uses CFBundleExecutable from Info.plist, falling back to the top-level
    Mach-O files of the bundle (a file named after the bundle wins).

    Raises:
        BinaryNotFoundError: If no single main executable can be identified.
    """
    executable = _executable_from_info_plist(bundle)
    if executable is not None:
        return executable

    # Frameworks/, PlugIns/ and friends are directories, so only top-level files count
    candidates = sorted(
        entry for entry in bundle.iterdir() if entry.is_file() and is_macho(entry)
    )

    for candidate in candidates:
        if candidate.name == bundle.stem:
            return candidate

    if len(candidates) == 1:
        return candidates[0]

    if not candidates:
        raise BinaryNotFoundError(f"No Mach-O executable found in {bundle}")

    names = ", ".join(candidate.name for candidate in candidates)
    raise BinaryNotFoundError(
        f"Cannot tell the main executable apart in {bundle.name}: {names}"
    )


def find_mach_o_binary(extracted_dir: Path) -> MachOBinary:
    """Locate and describe the main Mach-O executable of an extracted IPA.

    Args:
        extracted_dir: Directory the IPA was unzipped into.

    Returns:
        MachOBinary with its architectures and the slice to analyze.

    Raises:
        BinaryNotFoundError: If the bundle or its executable cannot be resolved.
    """
    bundle = find_app_bundle(extracted_dir)
    executable = find_main_executable(bundle)
    architectures, encrypted = read_architectures(executable)

    return MachOBinary(
        path=executable,
        bundle=bundle,
        architectures=architectures,
        selected_arch=select_architecture(architectures),
        encrypted=encrypted,
    )
