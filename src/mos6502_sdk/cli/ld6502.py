"""
ld6502 - 6502 Linker Command-Line Interface
===========================================

Links objects produced by as6502 into an iNES cartridge image.

Usage Examples
--------------
Link two objects:
    $ ld6502 main.o lib.o -o game.nes

With character ROM:
    $ ld6502 main.o -C tiles.chr -o game.nes

PAL timing:
    $ ld6502 main.o -o game.nes --pal

Each input's symbols are read from the sidecar next to it (``main.o`` ->
``main.sym``), as written by ``as6502 -c`` or ``as6502 -s``.
"""

from pathlib import Path
from typing import Optional

import click

from mos6502_sdk import __version__
from mos6502_sdk.cli.errors import handle_cli_exception, setup_logging
from mos6502_sdk.linker import Linker
from mos6502_sdk.objfile.ines import INESProperties, VideoStandard
from mos6502_sdk.objfile.loader import ObjectFormat


@click.command()
@click.argument(
    "input_files",
    nargs=-1,
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-o", "--output",
    required=True,
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output iNES image",
)
@click.option(
    "-C", "--chr", "chr_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Character ROM: an iNES image or a flat binary",
)
@click.option(
    "-F", "--format", "fmt",
    type=click.Choice(["auto", "flat", "ines"], case_sensitive=False),
    default="auto",
    show_default=True,
    help="Input object format",
)
@click.option(
    "--pal",
    is_flag=True,
    help="Mark the image as PAL (default: NTSC)",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="ld6502")
def main(
    input_files: tuple[Path, ...],
    output: Path,
    chr_file: Optional[Path],
    fmt: str,
    pal: bool,
    verbose: bool,
) -> None:
    """
    Link 6502 object files into an iNES image.

    INPUT_FILES are linked in the order given. No output is written if
    linking fails.
    """
    setup_logging(verbose)

    input_format = None if fmt.lower() == "auto" else ObjectFormat(fmt.lower())
    properties = INESProperties(video=VideoStandard.PAL if pal else VideoStandard.NTSC)

    try:
        linker = Linker()
        result = linker.link_files(list(input_files), chr_file, input_format)
        size = linker.write_ines_file(result, output, properties)

        if verbose:
            click.echo(f"Linked {len(input_files)} object(s)")
            click.echo(f"PRG-ROM: {len(result.prg_rom)} bytes at ${result.prg_rom.start:04X}")
            if result.chr_rom is not None:
                click.echo(f"CHR-ROM: {len(result.chr_rom)} bytes")
            click.echo(f"Wrote {size} bytes to {output}")

    except Exception as e:
        handle_cli_exception(e, verbose, "Link")


if __name__ == "__main__":
    main()
