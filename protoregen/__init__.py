# Copyright 2025 Maida.AI
# SPDX-License-Identifier: Apache-2.0
r"""protoregen - Regenerate sources from Protocol Buffers definitions.

This package drives the protobuf compiler and a code generator plugin to
regenerate the descriptor sources bundled with a protobuf runtime crate.

A regeneration provides:
- A version gate on ``protoc --version`` that runs before anything else
- Helper binary builds through cargo and resolution of the vendored compiler
- A Codegen builder for a single protoc invocation
- Line rewriting of protoc insertion points into serde attributes
- Relocation of generated files into the source tree, with change detection
- YAML/JSON regeneration plans described as pydantic models
"""

# Import public API from modules
from .codegen import (
    Codegen,
    ParsedInputs,
    parse_dependencies,
)
from .config import (
    HelperBuild,
    RegenConfig,
    SubstitutionRule,
    load_config,
)
from .constants import (
    DEFAULT_TMP_DIR,
    REQUIRED_PROTOC_PREFIX,
    SERDE_DERIVE_ATTR,
    SERDE_SKIP_ATTR,
    VERSION_MISMATCH_MESSAGE,
)
from .errors import (
    CommandError,
    ImportPathError,
    ProtocVersionError,
    RegenError,
    RelocationError,
)
from .layout import (
    PROTOBUF_CRATE_MOVES,
    Move,
    Placement,
    relocate,
)
from .postprocess import (
    SERDE_SUBSTITUTIONS,
    Substitution,
    rewrite_file,
    rewrite_text,
    rewrite_tree,
)
from .regenerate import RegenReport, regenerate
from .toolchain import (
    Toolchain,
    cargo_build,
    cargo_run,
    check_protoc_version,
    exe_suffix,
    protoc_version,
    run_command,
)

# Public API exports
__all__ = [
    # Pipeline
    "regenerate",
    "RegenReport",
    "RegenConfig",
    "HelperBuild",
    "SubstitutionRule",
    "load_config",
    # Code generation
    "Codegen",
    "ParsedInputs",
    "parse_dependencies",
    # Toolchain
    "Toolchain",
    "run_command",
    "protoc_version",
    "check_protoc_version",
    "exe_suffix",
    "cargo_build",
    "cargo_run",
    # Rewriting and layout
    "Substitution",
    "SERDE_SUBSTITUTIONS",
    "rewrite_text",
    "rewrite_file",
    "rewrite_tree",
    "Move",
    "Placement",
    "PROTOBUF_CRATE_MOVES",
    "relocate",
    # Constants
    "REQUIRED_PROTOC_PREFIX",
    "VERSION_MISMATCH_MESSAGE",
    "SERDE_SKIP_ATTR",
    "SERDE_DERIVE_ATTR",
    "DEFAULT_TMP_DIR",
    # Errors
    "RegenError",
    "ProtocVersionError",
    "CommandError",
    "ImportPathError",
    "RelocationError",
]
