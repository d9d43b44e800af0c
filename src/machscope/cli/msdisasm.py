"""
msdisasm - Annotated ARM/ARM64 Disassembler Command-Line Interface
==================================================================

This module implements the command-line interface for the annotating
disassembler. It disassembles code in a live process (attached through LLDB)
or in a JSON process snapshot.

Usage Examples
--------------
Disassemble 100 instructions in a running process:
    $ msdisasm 0x100003f20 --pid 1234

Limit number of instructions:
    $ msdisasm 0x100003f20 --pid 1234 --count 20

Disassemble a snapshot:
    $ msdisasm 0x100003f20 --snapshot app.json

JSON records instead of a listing:
    $ msdisasm 0x100003f20 --snapshot app.json --format json -o listing.json

Exit Codes
----------
0 - Success
1 - Unsupported CPU, invalid/unmapped/non-executable address, attach error
2 - Invalid arguments
3 - Internal error

Copyright (c) 2025-2026 Machscope Contributors
"""

import json
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional

import click

from machscope import __version__
from machscope.cli.errors import handle_cli_exception
from machscope.config import DisasmConfig, get_default_config
from machscope.disassembler import AnnotatedInstruction, disassemble
from machscope.target import LLDBTarget, ProcessTarget, SnapshotTarget

logger = logging.getLogger(__name__)


def setup_logging(config: DisasmConfig, verbose: bool) -> None:
    """Configure logging based on verbosity."""
    level = logging.DEBUG if verbose else config.logging_level
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s" if verbose else "%(message)s",
    )


@contextmanager
def open_target(
    pid: Optional[int],
    snapshot: Optional[Path],
    string_limit: int,
) -> Iterator[ProcessTarget]:
    """Open the process target selected on the command line."""
    if snapshot is not None:
        yield SnapshotTarget.load(snapshot, string_limit=string_limit)
        return

    target = LLDBTarget.attach(pid, string_limit=string_limit)
    try:
        yield target
    finally:
        target.close()


def format_listing(
    records: List[AnnotatedInstruction],
    source: str,
    address: str,
    arch: str,
) -> str:
    """Render records as a text listing with a short header."""
    lines = [
        f"; Disassembly of {source}",
        f"; Start address: {address}",
        f"; Architecture: {arch}",
        f"; Instructions: {len(records)}",
        "",
    ]
    lines.extend(str(record) for record in records)
    return "\n".join(lines) + "\n"


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument("address", type=str)
@click.option(
    "-p", "--pid",
    type=int,
    default=None,
    help="Attach to this process id through LLDB",
)
@click.option(
    "-s", "--snapshot",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Disassemble a JSON process snapshot instead of a live process",
)
@click.option(
    "-c", "--count",
    type=click.IntRange(min=1),
    default=None,
    help="Maximum number of instructions (default: 100, or MACHSCOPE_COUNT)",
)
@click.option(
    "-f", "--format", "output_format",
    type=click.Choice(["text", "json"]),
    default=None,
    help="Text listing or JSON records (default: text, or MACHSCOPE_FORMAT)",
)
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output file (default: stdout)",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="msdisasm")
def main(
    address: str,
    pid: Optional[int],
    snapshot: Optional[Path],
    count: Optional[int],
    output_format: Optional[str],
    output: Optional[Path],
    verbose: bool,
) -> None:
    """
    Disassemble and annotate ARM/ARM64 code in a process.

    ADDRESS is the start address (hex with 0x prefix, or decimal).

    Jump targets are shown as symbols, and adrp/ldr pairs are resolved to
    the string, selector, class or protocol they load.

    Examples:

        # 20 instructions of a running process
        msdisasm 0x100003f20 --pid 1234 --count 20

        # JSON records from a snapshot
        msdisasm 0x100003f20 --snapshot app.json --format json
    """
    config = get_default_config()
    setup_logging(config, verbose)

    try:
        if (pid is None) == (snapshot is None):
            raise click.BadParameter("give exactly one of --pid or --snapshot")

        if count is None:
            count = config.default_count
        if output_format is None:
            output_format = config.output_format

        source = str(snapshot) if snapshot is not None else f"pid {pid}"
        with open_target(pid, snapshot, config.string_limit) as target:
            records = disassemble(target, address, count)
            arch = target.arch

        if output_format == "json":
            result = json.dumps([r.to_dict() for r in records], indent=2) + "\n"
        else:
            result = format_listing(records, source, address, arch)

        if output:
            output.write_text(result, encoding="utf-8")
            logger.info(f"Output written to: {output}")
        else:
            click.echo(result, nl=False)

        logger.debug(f"Instructions disassembled: {len(records)}")

    except Exception as e:
        handle_cli_exception(e, verbose)


# =============================================================================
# Entry Point
# =============================================================================

if __name__ == "__main__":
    main()
