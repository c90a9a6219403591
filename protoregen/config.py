"""Regeneration plan models and loading."""

import glob
import json
import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

from .constants import (
    DEFAULT_LANG,
    DEFAULT_TMP_DIR,
    GENERATED_SUFFIX,
    PROTOC_WHICH_BIN,
    REQUIRED_PROTOC_PREFIX,
)
from .layout import PROTOBUF_CRATE_MOVES, Move
from .postprocess import SERDE_SUBSTITUTIONS, Substitution

logger = logging.getLogger(__name__)


class HelperBuild(BaseModel):
    """A cargo package (optionally one binary) built before generation."""

    manifest: str
    bin: str | None = None


class SubstitutionRule(BaseModel):
    """Regex line rule; a null replacement deletes matching lines."""

    pattern: str
    replacement: str | None = None

    def to_substitution(self) -> Substitution:
        return Substitution(self.pattern, self.replacement)


class RegenConfig(BaseModel):
    """Everything needed to regenerate sources from .proto files."""

    root: Path = Field(default_factory=Path.cwd, description="Directory all other paths are relative to")
    protoc_prefix: str = Field(REQUIRED_PROTOC_PREFIX, description="Required `protoc --version` prefix")
    version_protoc: str = Field("protoc", description="Compiler whose version is checked before anything runs")
    helpers: list[HelperBuild] = Field(default_factory=list, description="cargo builds run before generation")
    protoc_which: HelperBuild | None = Field(None, description="Helper printing the protoc path to use")
    workspace: str = Field("..", description="cargo workspace holding target/debug")
    lang: str = DEFAULT_LANG
    options: dict[str, Any] = Field(default_factory=dict, description="Generator options")
    includes: list[str] = Field(default_factory=list)
    inputs: list[str] = Field(..., min_length=1, description=".proto files or globs")
    tmp_dir: str = DEFAULT_TMP_DIR
    generated_suffix: str = GENERATED_SUFFIX
    substitutions: list[SubstitutionRule] = Field(default_factory=list)
    moves: list[Move] = Field(default_factory=list)

    def rules(self) -> list[Substitution]:
        return [rule.to_substitution() for rule in self.substitutions]

    def resolve_inputs(self) -> list[str]:
        """Expand input globs relative to ``root``, keeping the order given.

        A glob matching nothing is passed through unchanged so that the
        compiler reports the missing file.
        """
        resolved = []
        for pattern in self.inputs:
            if not glob.has_magic(pattern):
                resolved.append(pattern)
                continue
            matches = sorted(m for m in glob.glob(pattern, root_dir=self.root) if (self.root / m).is_file())
            if not matches:
                logger.warning("input pattern %s matched nothing", pattern)
                resolved.append(pattern)
                continue
            resolved += [Path(m).as_posix() for m in matches]
        return resolved

    @classmethod
    def protobuf_crate(cls, root: Path | str | None = None) -> "RegenConfig":
        """Plan regenerating the protobuf crate's bundled descriptor sources.

        Args:
            root: The protobuf crate directory (sibling of protobuf-codegen)
        """
        return cls(
            root=Path(root) if root is not None else Path.cwd(),
            helpers=[
                HelperBuild(manifest="../protobuf-codegen/Cargo.toml"),
                HelperBuild(manifest="../protoc-bin-vendored/Cargo.toml", bin=PROTOC_WHICH_BIN),
            ],
            protoc_which=HelperBuild(manifest="../protoc-bin-vendored/Cargo.toml", bin=PROTOC_WHICH_BIN),
            workspace="..",
            options={"inside_protobuf": True},
            includes=["../proto", "../protoc-bin-vendored/include"],
            inputs=[
                "../protoc-bin-vendored/include/google/protobuf/*.proto",
                "../protoc-bin-vendored/include/google/protobuf/compiler/*",
                "../proto/rustproto.proto",
                "../proto/doctest_pb.proto",
            ],
            substitutions=[
                SubstitutionRule(pattern=rule.pattern, replacement=rule.replacement) for rule in SERDE_SUBSTITUTIONS
            ],
            moves=[move.model_copy(deep=True) for move in PROTOBUF_CRATE_MOVES],
        )


def load_config(path: Path | str) -> RegenConfig:
    """Load a plan from a YAML or JSON file.

    A relative ``root`` (or none) is taken relative to the file's directory.

    Raises:
        ValueError: Unsupported file type, unparsable file or non-mapping plan
        pydantic.ValidationError: The plan does not match the schema
    """
    path = Path(path)
    with open(path, encoding="utf-8") as f:
        if path.suffix in (".yml", ".yaml"):
            try:
                data = yaml.safe_load(f) or {}
            except yaml.YAMLError as exc:
                raise ValueError(f"Invalid YAML in {path}: {exc}") from exc
        elif path.suffix == ".json":
            data = json.load(f)
        else:
            raise ValueError(f"Unsupported config format: {path.suffix}")

    if not isinstance(data, dict):
        raise ValueError(f"Config must be a mapping, not {type(data).__name__}: {path}")

    root = Path(data.get("root", "."))
    if not root.is_absolute():
        root = path.parent / root
    data["root"] = root
    logger.debug("loaded config %s (root %s)", path, root)
    return RegenConfig(**data)
