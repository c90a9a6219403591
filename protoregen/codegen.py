"""Builder for a single protoc code generation run.

Example::

    Codegen().out_dir("src/protos").inputs(["protos/a.proto", "protos/b.proto"]).include("protos").run()
"""

import logging
import re
import sys
import tempfile
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path, PurePath
from typing import Any

from google.protobuf import descriptor_pb2

from .constants import DEFAULT_LANG
from .errors import ImportPathError, RegenError
from .toolchain import Toolchain, run_command

logger = logging.getLogger(__name__)

_TOKEN = re.compile(
    r"""
    (?P<string>"(?:\\.|[^"\\\n])*"|'(?:\\.|[^'\\\n])*')
    | (?P<comment>//[^\n]*|/\*.*?(?:\*/|\Z))
    | (?P<word>[A-Za-z_][A-Za-z0-9_.]*)
    | (?P<symbol>\S)
    """,
    re.VERBOSE | re.DOTALL,
)


def _tokens(content: str) -> list[tuple[str, str]]:
    # One left-to-right pass: a quote or comment opener inside another token is text
    return [(m.lastgroup, m.group()) for m in _TOKEN.finditer(content) if m.lastgroup != "comment"]


def parse_dependencies(content: str) -> list[str]:
    """Return the import paths declared in .proto source text."""
    tokens = _tokens(content)
    imports = []
    for i, (kind, text) in enumerate(tokens):
        if kind != "word" or text != "import":
            continue
        # imports are top level statements
        if i > 0 and tokens[i - 1][1] not in (";", "}"):
            continue
        j = i + 1
        if j < len(tokens) and tokens[j] in (("word", "public"), ("word", "weak")):
            j += 1
        if j + 1 < len(tokens) and tokens[j][0] == "string" and tokens[j + 1][1] == ";":
            imports.append(tokens[j][1][1:-1])
    return imports


def _format_option(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


@dataclass
class ParsedInputs:
    """Result of describing the inputs through the compiler."""

    # One entry for each input .proto file
    relative_paths: list[str]
    # All files including dependencies of the inputs
    file_descriptors: list[descriptor_pb2.FileDescriptorProto] = field(default_factory=list)


class Codegen:
    """Invoke ``protoc --<lang>_out=...`` with a code generator plugin."""

    def __init__(self) -> None:
        self._out_dir: Path | None = None
        self._includes: list[Path] = []
        self._inputs: list[Path] = []
        self._customize: dict[str, Any] = {}
        self._protoc = "protoc"
        self._plugin: Path | None = None
        self._lang = DEFAULT_LANG
        self._cwd: Path | None = None

    # ------------------------------------------------------------------
    # Builder
    # ------------------------------------------------------------------

    def out_dir(self, out_dir: Path | str) -> "Codegen":
        """Set the output directory for generated files."""
        self._out_dir = Path(out_dir)
        return self

    def include(self, include: Path | str) -> "Codegen":
        """Add an include directory."""
        self._includes.append(Path(include))
        return self

    def includes(self, includes: Iterable[Path | str]) -> "Codegen":
        """Add include directories."""
        for include in includes:
            self.include(include)
        return self

    def input(self, input: Path | str) -> "Codegen":
        """Add an input .proto file."""
        self._inputs.append(Path(input))
        return self

    def inputs(self, inputs: Iterable[Path | str]) -> "Codegen":
        """Add input .proto files."""
        for input in inputs:
            self.input(input)
        return self

    def customize(self, **options: Any) -> "Codegen":
        """Set generator options passed as ``--<lang>_opt``."""
        self._customize.update(options)
        return self

    def protoc(self, protoc: Path | str) -> "Codegen":
        self._protoc = str(protoc)
        return self

    def plugin(self, plugin: Path | str | None) -> "Codegen":
        self._plugin = Path(plugin) if plugin is not None else None
        return self

    def lang(self, lang: str) -> "Codegen":
        self._lang = lang
        return self

    def cwd(self, cwd: Path | str) -> "Codegen":
        """Directory that relative paths are resolved against."""
        self._cwd = Path(cwd)
        return self

    def toolchain(self, toolchain: Toolchain) -> "Codegen":
        """Take compiler, plugin and language from a resolved toolchain."""
        return self.protoc(toolchain.protoc).plugin(toolchain.plugin).lang(toolchain.lang)

    # ------------------------------------------------------------------
    # Command line
    # ------------------------------------------------------------------

    def command(self) -> list[str]:
        """Build the compiler command line.

        Returns:
            argv for protoc

        Raises:
            ValueError: No output directory or no inputs configured
        """
        if self._out_dir is None:
            raise ValueError("output directory is not set")
        if not self._inputs:
            raise ValueError("no input .proto files")

        argv = [self._protoc]
        if self._plugin is not None:
            argv.append(f"--plugin=protoc-gen-{self._lang}={self._plugin}")
        argv += [f"--{self._lang}_out", str(self._out_dir)]
        if self._customize:
            opts = ",".join(f"{key}={_format_option(value)}" for key, value in self._customize.items())
            argv += [f"--{self._lang}_opt", opts]
        argv += [f"-I{include}" for include in self._includes]
        argv += [str(path) for path in self._inputs]
        return argv

    # ------------------------------------------------------------------
    # Include path resolution
    # ------------------------------------------------------------------

    def _fs(self, path: PurePath) -> Path:
        path = Path(path)
        if self._cwd is not None and not path.is_absolute():
            return self._cwd / path
        return path

    @staticmethod
    def _strip_prefix(path: PurePath, prefix: PurePath) -> str | None:
        # `.` accepts any relative path
        if prefix == PurePath(".") and not path.is_absolute():
            return path.as_posix()
        try:
            return path.relative_to(prefix).as_posix()
        except ValueError:
            return None

    def relative_path(self, path: Path | str) -> str:
        """Path of an input relative to the first include directory containing it.

        Raises:
            ImportPathError: The file does not reside in any include directory
        """
        path = PurePath(path)
        for include in self._includes:
            relative = self._strip_prefix(path, include)
            if relative is not None:
                return relative
        raise ImportPathError(f"file `{path}` must reside in include path {[str(i) for i in self._includes]}")

    def relative_paths(self) -> list[str]:
        return [self.relative_path(path) for path in self._inputs]

    def _find_import(self, proto_path: str) -> Path:
        for include in self._includes:
            candidate = self._fs(include / proto_path)
            if candidate.exists():
                return candidate
        raise ImportPathError(
            f"protobuf path `{proto_path}` is not found in import path {[str(i) for i in self._includes]}"
        )

    def check_imports(self) -> list[str]:
        """Resolve every input and its transitive imports in the include path.

        Returns:
            Proto paths of all files reached, in first-seen order

        Raises:
            ImportPathError: An input or an import cannot be located
        """
        seen: dict[str, None] = {}

        def visit(proto_path: str, fs_path: Path) -> None:
            if proto_path in seen:
                return
            seen[proto_path] = None
            try:
                content = fs_path.read_text(encoding="utf-8")
            except OSError as exc:
                raise ImportPathError(f"could not read file `{fs_path}`: {exc}") from exc
            for dependency in parse_dependencies(content):
                if dependency not in seen:
                    visit(dependency, self._find_import(dependency))

        for path in self._inputs:
            visit(self.relative_path(path), self._fs(path))
        return list(seen)

    # ------------------------------------------------------------------
    # Running
    # ------------------------------------------------------------------

    def describe(self) -> ParsedInputs:
        """Parse and type check the inputs with protoc, without generating code."""
        relative_paths = self.relative_paths()
        with tempfile.TemporaryDirectory(prefix="protoregen-") as tmp:
            descriptor_set = Path(tmp) / "descriptor_set.pb"
            argv = [self._protoc, f"--descriptor_set_out={descriptor_set}", "--include_imports"]
            argv += [f"-I{include}" for include in self._includes]
            argv += [str(path) for path in self._inputs]
            run_command(argv, cwd=self._cwd)

            file_set = descriptor_pb2.FileDescriptorSet()
            file_set.ParseFromString(descriptor_set.read_bytes())

        return ParsedInputs(relative_paths=relative_paths, file_descriptors=list(file_set.file))

    def run(self) -> None:
        """Run the compiler, creating the output directory first."""
        argv = self.command()
        self._fs(self._out_dir).mkdir(parents=True, exist_ok=True)
        run_command(argv, cwd=self._cwd)
        logger.debug("generated %d input(s) into %s", len(self._inputs), self._out_dir)

    def run_from_script(self) -> None:
        """Like run(), but log the error and exit the process with status 1."""
        try:
            self.run()
        except (RegenError, ValueError) as exc:
            logger.error("codegen failed: %s", exc)
            sys.exit(1)
