"""Errors raised while regenerating sources."""

from collections.abc import Sequence


class RegenError(RuntimeError):
    """Base class for regeneration failures."""


class ProtocVersionError(RegenError):
    """The protobuf compiler is not the required major version."""

    def __init__(self, message: str, version: str):
        super().__init__(message)
        self.version = version


class CommandError(RegenError):
    """An external command could not be run or exited non-zero."""

    def __init__(self, argv: Sequence[str], returncode: int | None = None, stderr: str = ""):
        """Initialize command error.

        Args:
            argv: Command that failed
            returncode: Exit status, or None when the executable was not found
            stderr: Captured standard error, if any
        """
        self.argv = list(argv)
        self.returncode = returncode
        self.stderr = stderr
        if returncode is None:
            message = f"command not found: {self.argv[0]}"
        else:
            message = f"command failed with exit status {returncode}: {' '.join(self.argv)}"
        if stderr:
            message = f"{message}\n{stderr.rstrip()}"
        super().__init__(message)


class ImportPathError(RegenError):
    """A .proto file cannot be located relative to the include path."""


class RelocationError(RegenError):
    """A generated file could not be moved into place."""
