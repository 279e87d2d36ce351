"""
dis6502 - 6502 Disassembler Command-Line Interface
==================================================

Disassembles flat binaries and iNES images back into as6502 source.

Usage Examples
--------------
Disassemble to stdout:
    $ dis6502 prog.o

Output to file:
    $ dis6502 game.nes -o game.s

Show addresses and bytes:
    $ dis6502 prog.o --annotate

A ``.sym`` sidecar next to the input, when present, supplies label names.
Branch and jump targets without a name get ``Label1``, ``Label2``, ...
"""

import sys
from pathlib import Path
from typing import Optional

import click

from mos6502_sdk import __version__
from mos6502_sdk.cli.errors import ExitCode, handle_cli_exception, setup_logging
from mos6502_sdk.disassembler import Disassembler
from mos6502_sdk.objfile.loader import ObjectFormat, detect_format, load_object


@click.command()
@click.argument(
    "input_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output file (default: stdout)",
)
@click.option(
    "-F", "--format", "fmt",
    type=click.Choice(["auto", "flat", "ines"], case_sensitive=False),
    default="auto",
    show_default=True,
    help="Input object format",
)
@click.option(
    "--annotate",
    is_flag=True,
    help="Prefix each line with its address and bytes",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="dis6502")
def main(
    input_file: Path,
    output: Optional[Path],
    fmt: str,
    annotate: bool,
    verbose: bool,
) -> None:
    """
    Disassemble a 6502 object file.

    INPUT_FILE is a flat binary or an iNES image.
    """
    setup_logging(verbose)

    input_format = None if fmt.lower() == "auto" else ObjectFormat(fmt.lower())

    try:
        with open(input_file, "rb") as f:
            detected = input_format or detect_format(f)
        obj = load_object(input_file, detected, with_symbols=True)
    except Exception as e:
        handle_cli_exception(e, verbose)

    if detected is ObjectFormat.INES:
        # CHR-ROM holds pattern data, not code
        obj.blobs = obj.blobs[:1]

    if obj.is_empty():
        click.echo(f"Error: {input_file} is empty", err=True)
        sys.exit(ExitCode.BUILD_ERROR)

    if verbose:
        click.echo(f"Input file: {input_file} ({obj.size} bytes)", err=True)

    disasm = Disassembler(obj.symbols)
    result = disasm.disassemble_to_text(obj, annotate)

    if output:
        try:
            output.write_text(result, encoding="utf-8")
        except OSError as e:
            handle_cli_exception(e, verbose)
        if verbose:
            click.echo(f"Output written to: {output}", err=True)
    else:
        click.echo(result, nl=False)


if __name__ == "__main__":
    main()
