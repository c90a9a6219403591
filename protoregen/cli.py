"""protoregen command line interface.

Usage:
  $ protoregen                        # regenerate the protobuf crate from the current directory
  $ protoregen --root path/to/protobuf
  $ protoregen --config regen.yaml --check
"""

import argparse
import logging
import sys
from collections.abc import Sequence
from pathlib import Path

from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from .config import RegenConfig, load_config
from .errors import RegenError
from .regenerate import RegenReport, regenerate

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="protoregen", description="Regenerate sources from .proto definitions")
    parser.add_argument("--config", help="YAML or JSON regeneration plan (default: the protobuf crate plan)")
    parser.add_argument("--root", help="Directory the plan is relative to (overrides the plan's root)")
    parser.add_argument("--check", action="store_true", help="Fail if regeneration would change the source tree")
    parser.add_argument("--progress", action="store_true", help="Show progress while rewriting files")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def setup_logging(verbose: bool, console: Console) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def print_report(report: RegenReport, console: Console, check: bool = False) -> None:
    table = Table(title=f"Regenerated with {report.protoc_version}", box=box.SIMPLE_HEAVY)
    table.add_column("File")
    table.add_column("Destination")
    table.add_column("Status")
    for placement in report.placements:
        if placement.changed:
            status = "[yellow]would change[/yellow]" if check else "[green]updated[/green]"
        else:
            status = "unchanged"
        table.add_row(placement.source, str(placement.destination), status)
    console.print(table)


def main(argv: Sequence[str] | None = None) -> int:
    """Run the CLI and return the process exit status."""
    args = build_parser().parse_args(argv)
    console = Console(stderr=True)
    setup_logging(args.verbose, console)

    try:
        if args.config:
            config = load_config(args.config)
            if args.root:
                config = config.model_copy(update={"root": Path(args.root)})
        else:
            config = RegenConfig.protobuf_crate(args.root)
        report = regenerate(config, check=args.check, progress=args.progress)
    except (RegenError, ValueError, OSError) as exc:
        console.print(f"[red]error:[/red] {escape(str(exc))}")
        return 1

    print_report(report, console, check=args.check)
    if args.check and report.changed:
        logger.error("%d file(s) out of date", len(report.changed))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
