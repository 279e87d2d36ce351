"""
as6502 - 6502 Assembler Command-Line Interface
==============================================

This module implements the command-line interface for the 6502 assembler.
Each input source file is assembled into its own object file.

Usage Examples
--------------
Basic assembly:
    $ as6502 prog.s

With output file and format:
    $ as6502 prog.s -o prog.bin -F flat

Generate listing and symbol files:
    $ as6502 prog.s -l prog.lst -s prog.sym

Leave undefined symbols for the linker:
    $ as6502 -c main.s lib.s

Show the assembly process and symbol table:
    $ as6502 -S -T prog.s
"""

import sys
from pathlib import Path
from typing import Optional

import click

from mos6502_sdk import __version__
from mos6502_sdk.assembler import Assembler
from mos6502_sdk.cli.errors import ExitCode, handle_cli_exception, setup_logging
from mos6502_sdk.config import ToolchainConfig, parse_address
from mos6502_sdk.objfile.loader import ObjectFormat
from mos6502_sdk.objfile.symfile import sidecar_path


def _address_option(ctx: click.Context, param: click.Parameter,
                    value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    try:
        return parse_address(value)
    except ValueError as e:
        raise click.BadParameter(str(e)) from e


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument(
    "input_files",
    nargs=-1,
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output object file (default: input.o; single input only)",
)
@click.option(
    "-F", "--format", "fmt",
    type=click.Choice(["flat", "aout"], case_sensitive=False),
    default="flat",
    show_default=True,
    help="Object file format",
)
@click.option(
    "-s", "--symbols",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Generate symbol file (single input only)",
)
@click.option(
    "-l", "--listing",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Generate listing file (single input only)",
)
@click.option(
    "-S", "--print-process",
    is_flag=True,
    help="Print the annotated assembly process",
)
@click.option(
    "-T", "--print-table",
    is_flag=True,
    help="Print the symbol table",
)
@click.option(
    "-c", "--compile-only",
    is_flag=True,
    help="Leave undefined symbols for the linker (writes a .sym next to each object)",
)
@click.option(
    "--base",
    callback=_address_option,
    help="Load address of the first segment ($hex, 0xhex or decimal)",
)
@click.option(
    "--line-length",
    type=click.IntRange(min=8),
    default=None,
    help="Source line buffer capacity (default: 80)",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="as6502")
def main(
    input_files: tuple[Path, ...],
    output: Optional[Path],
    fmt: str,
    symbols: Optional[Path],
    listing: Optional[Path],
    print_process: bool,
    print_table: bool,
    compile_only: bool,
    base: Optional[int],
    line_length: Optional[int],
    verbose: bool,
) -> None:
    """
    Assemble 6502 source files.

    INPUT_FILES are assembly source files; each produces one object file.

    \b
    Examples:
        as6502 prog.s                # Outputs prog.o
        as6502 prog.s -o prog.bin    # Specify output file
        as6502 -c main.s lib.s       # Objects for ld6502
    """
    setup_logging(verbose)

    if len(input_files) > 1 and any(p is not None for p in (output, symbols, listing)):
        click.echo("Error: -o, -s and -l require a single input file", err=True)
        sys.exit(ExitCode.INVALID_ARGS)

    try:
        config = ToolchainConfig.from_env().with_overrides(
            program_start=base,
            max_line_length=line_length,
        )
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(ExitCode.INVALID_ARGS)

    object_format = ObjectFormat(fmt.lower())

    for input_file in input_files:
        output_file = output if output is not None else input_file.with_suffix(".o")
        asm = Assembler(config, allow_unresolved=compile_only)

        try:
            if verbose:
                click.echo(f"Assembling {input_file}...")

            asm.assemble_file(input_file)

            if print_process:
                click.echo(asm.get_process_trace())

            if print_table:
                click.echo(asm.get_symbol_table().dump())

            written = asm.write_object(output_file, object_format)
            if verbose:
                click.echo(f"Wrote {written} bytes to {output_file}")

            if listing:
                asm.write_listing(listing)
                if verbose:
                    click.echo(f"Wrote listing to {listing}")

            symbol_file = symbols
            if symbol_file is None and compile_only:
                symbol_file = sidecar_path(output_file)
            if symbol_file is not None:
                asm.write_symbols(symbol_file)
                if verbose:
                    click.echo(f"Wrote symbols to {symbol_file}")

            if verbose:
                click.echo(f"Defined {len(asm.get_symbols())} symbols")

        except Exception as e:
            handle_cli_exception(e, verbose)


# =============================================================================
# Entry Point
# =============================================================================

if __name__ == "__main__":
    main()
