#!/usr/bin/env python3
# type: ignore
"""Regenerate the protobuf crate's descriptor sources from .proto files.

Run from anywhere; paths are taken relative to the crate directory given as
the first argument (default: the current directory).
"""

import sys
from pathlib import Path

from protoregen import ProtocVersionError, RegenConfig, RegenError, regenerate


def main():
    """Regenerate descriptor.rs, plugin.rs and the well known types."""
    root = Path(sys.argv[1]) if len(sys.argv) > 1 else Path.cwd()
    config = RegenConfig.protobuf_crate(root)

    try:
        report = regenerate(config)
    except ProtocVersionError as e:
        print(f"✗ {e} (found {e.version!r})", file=sys.stderr)
        sys.exit(1)
    except RegenError as e:
        print(f"✗ Regeneration failed: {e}", file=sys.stderr)
        sys.exit(1)

    for placement in report.placements:
        print(f"✓ {placement.source} -> {placement.destination}")


if __name__ == "__main__":
    main()
