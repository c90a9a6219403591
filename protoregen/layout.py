"""Moving generated files into the source tree."""

import glob
import logging
import shutil
from dataclasses import dataclass
from pathlib import Path

from google_crc32c import Checksum
from pydantic import BaseModel, Field, model_validator

from .errors import RelocationError

logger = logging.getLogger(__name__)


class Move(BaseModel):
    """Move generated files into a destination directory."""

    sources: list[str] = Field(..., min_length=1, description="File names or globs in the generation dir")
    dest: str = Field(..., description="Destination directory relative to the project root")
    rename: str | None = Field(None, description="New file name; requires a single literal source")

    @model_validator(mode="after")
    def _check_rename(self) -> "Move":
        if self.rename is not None and (len(self.sources) != 1 or glob.has_magic(self.sources[0])):
            raise ValueError("rename requires exactly one literal source")
        return self


@dataclass
class Placement:
    """A generated file and where it ended up."""

    source: str
    destination: Path
    changed: bool


def file_crc32c(path: Path) -> int:
    """CRC32C of a file's content."""
    crc = Checksum()
    crc.update(path.read_bytes())
    return int.from_bytes(crc.digest(), "big")


def _expand(tmp_dir: Path, source: str, claimed: set[Path]) -> list[Path]:
    if glob.has_magic(source):
        matches = sorted(p for p in tmp_dir.glob(source) if p.is_file() and p not in claimed)
        if not matches:
            raise RelocationError(f"no generated file matches `{source}` in {tmp_dir}")
        return matches

    path = tmp_dir / source
    if path in claimed or not path.is_file():
        raise RelocationError(f"generated file `{source}` not found in {tmp_dir}")
    return [path]


def relocate(tmp_dir: Path | str, root: Path | str, moves: list[Move], dry_run: bool = False) -> list[Placement]:
    """Apply move rules in order.

    Args:
        tmp_dir: Directory the compiler generated into
        root: Project root that destinations are relative to
        moves: Rules to apply; files taken by an earlier rule are not seen by later globs
        dry_run: Compute placements without touching the file system

    Returns:
        One placement per moved file

    Raises:
        RelocationError: A literal source is missing or a glob matches nothing
    """
    tmp_dir = Path(tmp_dir)
    root = Path(root)
    claimed: set[Path] = set()
    placements = []

    for move in moves:
        dest_dir = root / move.dest
        for source in move.sources:
            for path in _expand(tmp_dir, source, claimed):
                claimed.add(path)
                target = dest_dir / (move.rename or path.name)
                changed = not target.is_file() or file_crc32c(target) != file_crc32c(path)
                if not dry_run:
                    dest_dir.mkdir(parents=True, exist_ok=True)
                    shutil.move(str(path), str(target))
                logger.debug("%s -> %s%s", path.name, target, "" if changed else " (unchanged)")
                placements.append(Placement(source=path.name, destination=target, changed=changed))

    return placements


# The protobuf crate's own layout
PROTOBUF_CRATE_MOVES = [
    Move(sources=["descriptor.rs", "plugin.rs", "rustproto.rs", "doctest_pb.rs"], dest="src"),
    Move(sources=["well_known_types_mod.rs"], dest="src/well_known_types", rename="mod.rs"),
    Move(sources=["*.rs"], dest="src/well_known_types"),
]
