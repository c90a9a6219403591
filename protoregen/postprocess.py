"""Line-oriented rewriting of generated sources."""

import logging
import os
import re
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

from tqdm import tqdm

from .constants import (
    INSERTION_POINT,
    MESSAGE_MARKER,
    SERDE_DERIVE_ATTR,
    SERDE_SKIP_ATTR,
    SPECIAL_FIELD_MARKER,
    TMP_SUFFIX,
)

logger = logging.getLogger(__name__)


@dataclass
class Substitution:
    """Replace a line from the first match of ``pattern`` to its end.

    Text before the match (indentation) is kept. A ``replacement`` of None
    deletes every line the pattern matches.
    """

    pattern: str
    replacement: str | None = None
    _regex: re.Pattern = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self._regex = re.compile(self.pattern)

    def apply(self, line: str) -> str | None:
        """Apply to one line without its line terminator; None means deleted."""
        match = self._regex.search(line)
        if match is None:
            return line
        if self.replacement is None:
            return None
        return line[: match.start()] + self.replacement


SERDE_SUBSTITUTIONS = (
    Substitution(re.escape(SPECIAL_FIELD_MARKER), SERDE_SKIP_ATTR),
    Substitution(re.escape(MESSAGE_MARKER), SERDE_DERIVE_ATTR),
    Substitution(re.escape(INSERTION_POINT), None),
)


def _lines(text: str) -> list[tuple[str, str]]:
    r"""Split on "\n" only, returning (body, ending) pairs; "\r\n" stays one ending."""
    lines = []
    parts = text.split("\n")
    for body in parts[:-1]:
        if body.endswith("\r"):
            lines.append((body[:-1], "\r\n"))
        else:
            lines.append((body, "\n"))
    if parts[-1]:
        lines.append((parts[-1], ""))
    return lines


def rewrite_text(text: str, rules: Sequence[Substitution] = SERDE_SUBSTITUTIONS) -> str:
    """Run every rule over every line, in order.

    Each rule sees the output of the previous one, so a line rewritten by an
    earlier rule no longer matches a later delete rule for the same marker.
    """
    out = []
    for body, ending in _lines(text):
        for rule in rules:
            body = rule.apply(body)
            if body is None:
                break
        if body is not None:
            out.append(body + ending)
    return "".join(out)


def rewrite_file(path: Path | str, rules: Sequence[Substitution] = SERDE_SUBSTITUTIONS) -> bool:
    """Rewrite a file through a temporary sibling.

    Returns:
        True if the content changed
    """
    path = Path(path)
    with open(path, encoding="utf-8", newline="") as f:
        original = f.read()

    rewritten = rewrite_text(original, rules)

    tmp = path.with_name(path.name + TMP_SUFFIX)
    with open(tmp, "w", encoding="utf-8", newline="") as f:
        f.write(rewritten)
    os.replace(tmp, path)
    return rewritten != original


def rewrite_tree(
    root: Path | str,
    rules: Sequence[Substitution] = SERDE_SUBSTITUTIONS,
    pattern: str = "*.rs",
    progress: bool = False,
) -> list[Path]:
    """Rewrite every file matching ``pattern`` below ``root``.

    Args:
        root: Directory to search recursively
        rules: Substitutions to apply
        pattern: Glob for files to rewrite
        progress: Show a progress bar

    Returns:
        Paths whose content changed, in sorted order
    """
    files = sorted(p for p in Path(root).rglob(pattern) if p.is_file())
    changed = []
    for path in tqdm(files, desc="rewrite", unit="file", disable=not progress):
        if rewrite_file(path, rules):
            changed.append(path)
    logger.info("rewrote %d of %d generated file(s)", len(changed), len(files))
    return changed

