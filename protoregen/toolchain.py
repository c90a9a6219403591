"""External toolchain: protoc, cargo and helper binaries."""

import logging
import platform
import subprocess
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from .constants import DEFAULT_LANG, EXE_SUFFIXES, REQUIRED_PROTOC_PREFIX, VERSION_MISMATCH_MESSAGE
from .errors import CommandError, ProtocVersionError

logger = logging.getLogger(__name__)


def run_command(argv: Sequence[str], cwd: Path | str | None = None, capture: bool = False) -> str:
    """Run an external command and fail fast on error.

    Args:
        argv: Command and arguments
        cwd: Working directory for the command
        capture: Capture and return standard output

    Returns:
        Standard output when ``capture`` is set, otherwise an empty string

    Raises:
        CommandError: The executable is missing or exited non-zero
    """
    argv = [str(arg) for arg in argv]
    logger.info("+ %s", " ".join(argv))
    try:
        result = subprocess.run(argv, cwd=cwd, capture_output=capture, text=True)
    except FileNotFoundError as exc:
        raise CommandError(argv) from exc

    if result.returncode != 0:
        raise CommandError(argv, result.returncode, result.stderr or "")
    return result.stdout if capture else ""


def protoc_version(protoc: str = "protoc", cwd: Path | str | None = None) -> str:
    """Return the output of ``protoc --version``."""
    return run_command([protoc, "--version"], cwd=cwd, capture=True).strip()


def check_protoc_version(version: str, prefix: str = REQUIRED_PROTOC_PREFIX) -> None:
    """Raise ProtocVersionError unless ``version`` starts with ``prefix``."""
    if not version.startswith(prefix):
        raise ProtocVersionError(VERSION_MISMATCH_MESSAGE, version)
    logger.debug("protoc version %r matches %r", version, prefix)


def exe_suffix(system: str | None = None) -> str:
    """Executable file suffix for the given (or current) platform."""
    system = system or platform.system()
    for name, suffix in EXE_SUFFIXES.items():
        if system.startswith(name):
            return suffix
    return ""


def cargo_build(manifest: Path | str, bin: str | None = None, cwd: Path | str | None = None) -> None:
    """Build a cargo package, optionally a single binary."""
    argv = ["cargo", "build", f"--manifest-path={manifest}"]
    if bin:
        argv += ["--bin", bin]
    run_command(argv, cwd=cwd)


def cargo_run(manifest: Path | str, bin: str, cwd: Path | str | None = None) -> str:
    """Run a cargo binary and return what it printed."""
    argv = ["cargo", "run", f"--manifest-path={manifest}", "--bin", bin]
    return run_command(argv, cwd=cwd, capture=True).strip()


# ----------------------------------------------------------------------------
# Resolved toolchain
# ----------------------------------------------------------------------------


@dataclass
class Toolchain:
    """Compiler and code generator plugin used for one regeneration."""

    protoc: str = "protoc"
    plugin: Path | None = None
    lang: str = DEFAULT_LANG

    @classmethod
    def from_workspace(
        cls, workspace: Path, protoc: str = "protoc", lang: str = DEFAULT_LANG, system: str | None = None
    ) -> "Toolchain":
        """Locate the debug build of ``protoc-gen-<lang>`` inside a cargo workspace.

        Args:
            workspace: Directory holding the cargo ``target`` directory
            protoc: Compiler executable
            lang: Generator language
            system: Platform name used to pick the executable suffix

        Returns:
            Toolchain with an absolute plugin path
        """
        plugin = Path(workspace).resolve() / "target" / "debug" / f"protoc-gen-{lang}{exe_suffix(system)}"
        return cls(protoc=protoc, plugin=plugin, lang=lang)
