"""
Object Loading and Format Detection
===================================

Flat files have no header and are indistinguishable from any other binary
stream, so detection only ever positively identifies iNES and falls back
to flat for everything else.
"""

from dataclasses import replace
from enum import Enum
from pathlib import Path
from typing import BinaryIO, Optional, Union
import logging

from mos6502_sdk.errors import FormatError
from mos6502_sdk.objfile.flat import read_flat, stored_blob_index, write_flat
from mos6502_sdk.objfile.aout import write_aout
from mos6502_sdk.objfile.ines import (
    INES_MAGIC_LENGTH,
    INESProperties,
    is_ines,
    read_ines,
)
from mos6502_sdk.objfile.object import ObjectFile
from mos6502_sdk.objfile.symfile import SymbolFile, load_symbol_file, sidecar_path

logger = logging.getLogger(__name__)


class ObjectFormat(Enum):
    """Supported container formats."""
    FLAT = "flat"
    AOUT = "aout"
    INES = "ines"

    def __str__(self) -> str:
        return self.value


def detect_format(stream: BinaryIO) -> ObjectFormat:
    """
    Identify a container by its magic without consuming the stream.

    The stream is returned to its original position before returning.
    """
    position = stream.tell()
    try:
        header = stream.read(INES_MAGIC_LENGTH)
    finally:
        stream.seek(position)
    return ObjectFormat.INES if is_ines(header) else ObjectFormat.FLAT


def read_object(stream: BinaryIO, fmt: Optional[ObjectFormat] = None,
                properties: Optional[INESProperties] = None) -> ObjectFile:
    """
    Read an object from a stream.

    Args:
        stream: Seekable binary stream
        fmt: Container format, or None to auto-detect
        properties: Filled from the header when the input is iNES

    Raises:
        FormatError: If iNES was requested explicitly and the data is not iNES
    """
    if fmt is None:
        fmt = detect_format(stream)
        logger.debug(f"Detected {fmt} format")

    if fmt is ObjectFormat.INES:
        return read_ines(stream, properties)
    if fmt is ObjectFormat.AOUT:
        raise FormatError("Reading a.out objects is not supported")
    return read_flat(stream)


def attach_symbols(obj: ObjectFile, symbol_file: SymbolFile, fmt: ObjectFormat) -> None:
    """
    Attach a sidecar to an object read back from a container.

    Flat and a.out containers hold a single blob of the assembled object.
    The sidecar's segment table identifies it: blob 0 takes its load
    address, and references into it are renumbered to blob 0. References
    into segments the container dropped cannot be patched and are
    discarded with a warning. iNES images keep their own layout.
    """
    obj.symbols = symbol_file.symbols
    if fmt is ObjectFormat.INES or not symbol_file.segments:
        obj.references = list(symbol_file.references)
        return

    lengths = [segment.length for segment in symbol_file.segments]
    stored = stored_blob_index(lengths) if fmt is ObjectFormat.FLAT else 0
    obj.blobs[0].start = symbol_file.segments[stored].start

    obj.references = []
    for ref in symbol_file.references:
        if ref.blob == stored:
            obj.references.append(replace(ref, blob=0))
        else:
            logger.warning(
                f"Reference to '{ref.name}' (line {ref.line}) lies in segment "
                f"{ref.blob}, which the {fmt} container does not hold"
            )
    logger.debug(f"Segment {stored} restored at ${obj.blobs[0].start:04X}")


def load_object(path: Union[str, Path], fmt: Optional[ObjectFormat] = None,
                properties: Optional[INESProperties] = None,
                with_symbols: bool = False) -> ObjectFile:
    """
    Load an object file from disk.

    Args:
        path: Object file path
        fmt: Container format, or None to auto-detect
        properties: Filled from the header when the input is iNES
        with_symbols: Also load the ``.sym`` sidecar when one exists

    Returns:
        The loaded ObjectFile
    """
    with open(path, "rb") as f:
        fmt = fmt or detect_format(f)
        obj = read_object(f, fmt, properties)

    if with_symbols:
        sym_path = sidecar_path(path)
        if sym_path.exists():
            attach_symbols(obj, load_symbol_file(sym_path), fmt)
            logger.debug(
                f"Loaded {len(obj.symbols)} symbols and {len(obj.references)} "
                f"references from {sym_path}"
            )

    return obj


def save_object(obj: ObjectFile, path: Union[str, Path],
                fmt: ObjectFormat = ObjectFormat.FLAT) -> int:
    """Write an object to disk in flat or a.out format."""
    if fmt is ObjectFormat.INES:
        raise FormatError("Cannot save a bare object as iNES; use the linker")

    writer = write_aout if fmt is ObjectFormat.AOUT else write_flat
    with open(path, "wb") as f:
        return writer(obj, f)
