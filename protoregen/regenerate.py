"""Regenerate sources from .proto definitions.

The run is strictly sequential and stops at the first failing step:

1. check ``protoc --version`` against the required prefix
2. build helper binaries and resolve the compiler to use
3. recreate the temporary generation directory
4. run the compiler with the code generator plugin
5. rewrite protoc insertion points in every generated file
6. move generated files into the source tree
"""

import logging
import shutil
from dataclasses import dataclass, field

from .codegen import Codegen
from .config import RegenConfig
from .layout import Placement, relocate
from .postprocess import rewrite_tree
from .toolchain import Toolchain, cargo_build, cargo_run, check_protoc_version, protoc_version

logger = logging.getLogger(__name__)


@dataclass
class RegenReport:
    """Outcome of one regeneration."""

    protoc_version: str
    generated: list[str] = field(default_factory=list)
    rewritten: list[str] = field(default_factory=list)
    placements: list[Placement] = field(default_factory=list)

    @property
    def changed(self) -> list[Placement]:
        return [p for p in self.placements if p.changed]


def resolve_toolchain(config: RegenConfig) -> Toolchain:
    """Build the helper binaries and locate protoc and the generator plugin."""
    root = config.root
    for helper in config.helpers:
        cargo_build(helper.manifest, helper.bin, cwd=root)

    protoc = "protoc"
    if config.protoc_which is not None:
        protoc = cargo_run(config.protoc_which.manifest, config.protoc_which.bin, cwd=root)
        logger.info("using protoc %s", protoc)

    return Toolchain.from_workspace(root / config.workspace, protoc=protoc, lang=config.lang)


def regenerate(config: RegenConfig, check: bool = False, progress: bool = False) -> RegenReport:
    """Run the whole pipeline.

    Args:
        config: Regeneration plan
        check: Generate and rewrite, but leave the source tree untouched
        progress: Show a progress bar while rewriting

    Returns:
        Report of generated, rewritten and placed files

    Raises:
        ProtocVersionError: protoc is not the required version; nothing else ran
        RegenError: Any later step failed
    """
    root = config.root
    version = protoc_version(config.version_protoc, cwd=root)
    check_protoc_version(version, config.protoc_prefix)

    toolchain = resolve_toolchain(config)

    tmp_dir = root / config.tmp_dir
    if tmp_dir.exists():
        shutil.rmtree(tmp_dir)
    tmp_dir.mkdir(parents=True)

    (
        Codegen()
        .cwd(root)
        .toolchain(toolchain)
        .out_dir(config.tmp_dir)
        .customize(**config.options)
        .includes(config.includes)
        .inputs(config.resolve_inputs())
        .run()
    )

    pattern = f"*{config.generated_suffix}"
    generated = sorted(p.relative_to(tmp_dir).as_posix() for p in tmp_dir.rglob(pattern) if p.is_file())
    logger.info("generated %d file(s) in %s", len(generated), tmp_dir)

    rewritten = rewrite_tree(tmp_dir, config.rules(), pattern=pattern, progress=progress)
    placements = relocate(tmp_dir, root, config.moves, dry_run=check)

    return RegenReport(
        protoc_version=version,
        generated=generated,
        rewritten=[p.relative_to(tmp_dir).as_posix() for p in rewritten],
        placements=placements,
    )
