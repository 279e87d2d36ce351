"""
iNES Cartridge Format
=====================

The iNES container used for NES ROM images.

File Layout
-----------
    Offset  Size  Contents
    0       4     Magic "NES\\x1A"
    4       12    Header data
    16      ...   PRG-ROM (16 KiB units), then CHR-ROM (8 KiB units)

Header Data (offsets relative to byte 4)
----------------------------------------
    0   PRG-ROM size in 16384-byte units
    1   CHR-ROM size in 8192-byte units
    2   Flags 6 (mirroring, battery, trainer, mapper low nibble)
    3   Flags 7 (mapper high nibble)
    4   PRG-RAM size (unused here)
    5   Bit 0: video timing, 0 = NTSC, 1 = PAL
    6+  Reserved, zero

Reading yields an object with two blobs: PRG-ROM at $8000 (the CPU's
cartridge window) and CHR-ROM at $0000 (PPU pattern table space).

Reference
---------
- https://www.nesdev.org/wiki/INES
"""

from dataclasses import dataclass, replace
from enum import IntEnum
from typing import BinaryIO, Optional
import logging

from mos6502_sdk.errors import FormatError
from mos6502_sdk.objfile.object import Blob, ObjectFile

logger = logging.getLogger(__name__)


INES_MAGIC = b"NES\x1a"
INES_MAGIC_LENGTH = 4
INES_HEADER_DATA_LENGTH = 12
INES_HEADER_LENGTH = INES_MAGIC_LENGTH + INES_HEADER_DATA_LENGTH

PRG_ROM_UNIT = 16384
CHR_ROM_UNIT = 8192

PRG_ROM_ORIGIN = 0x8000
CHR_ROM_ORIGIN = 0x0000


class VideoStandard(IntEnum):
    """Video timing standard stored in header byte 5, bit 0."""
    NTSC = 0
    PAL = 1


@dataclass
class INESProperties:
    """
    Cartridge properties carried in the iNES header.

    Attributes:
        prg_rom_banks: Number of 16 KiB PRG-ROM banks
        chr_rom_banks: Number of 8 KiB CHR-ROM banks
        flags6: Raw flags 6 byte
        flags7: Raw flags 7 byte
        video: NTSC or PAL timing
    """
    prg_rom_banks: int = 0
    chr_rom_banks: int = 0
    flags6: int = 0
    flags7: int = 0
    video: VideoStandard = VideoStandard.NTSC

    @property
    def mapper(self) -> int:
        return (self.flags7 & 0xF0) | (self.flags6 >> 4)

    def header_data(self) -> bytes:
        """The 12 header bytes that follow the magic."""
        data = bytearray(INES_HEADER_DATA_LENGTH)
        data[0] = self.prg_rom_banks & 0xFF
        data[1] = self.chr_rom_banks & 0xFF
        data[2] = self.flags6 & 0xFF
        data[3] = self.flags7 & 0xFF
        data[5] = int(self.video) & 0x01
        return bytes(data)

    @classmethod
    def from_header_data(cls, data: bytes) -> "INESProperties":
        return cls(
            prg_rom_banks=data[0],
            chr_rom_banks=data[1],
            flags6=data[2],
            flags7=data[3],
            video=VideoStandard(data[5] & 0x01),
        )


def _banks(length: int, unit: int) -> int:
    return (length + unit - 1) // unit


def _padded(data: bytes, unit: int) -> bytes:
    banks = _banks(len(data), unit)
    return bytes(data) + bytes(banks * unit - len(data))


def is_ines(header: bytes) -> bool:
    """Check whether data starts with the iNES magic."""
    return header[:INES_MAGIC_LENGTH] == INES_MAGIC


def write_ines(
    stream: BinaryIO,
    prg_rom: Blob,
    chr_rom: Optional[Blob] = None,
    properties: Optional[INESProperties] = None,
) -> int:
    """
    Write an iNES image.

    PRG-ROM is zero padded to a whole 16 KiB bank and CHR-ROM to a whole
    8 KiB bank. The bank counts in the header are computed from the data;
    flags and video timing come from properties. The caller's properties
    are not modified.

    Args:
        stream: Binary output stream
        prg_rom: Program segment
        chr_rom: Character (pattern table) segment, may be None
        properties: Header flags; defaults to NTSC with no flags

    Returns:
        Number of bytes written
    """
    prg = _padded(prg_rom.data, PRG_ROM_UNIT)
    chr_data = _padded(chr_rom.data, CHR_ROM_UNIT) if chr_rom is not None else b""

    props = replace(
        properties or INESProperties(),
        prg_rom_banks=len(prg) // PRG_ROM_UNIT,
        chr_rom_banks=len(chr_data) // CHR_ROM_UNIT,
    )

    if props.prg_rom_banks > 0xFF or props.chr_rom_banks > 0xFF:
        raise FormatError("ROM too large for an iNES header")

    stream.write(INES_MAGIC)
    stream.write(props.header_data())
    stream.write(prg)
    stream.write(chr_data)

    logger.debug(
        f"Wrote iNES image: {props.prg_rom_banks} PRG bank(s), "
        f"{props.chr_rom_banks} CHR bank(s), {props.video.name}"
    )
    return INES_HEADER_LENGTH + len(prg) + len(chr_data)


def write_object_ines(obj: ObjectFile, stream: BinaryIO,
                      chr_object: Optional[ObjectFile] = None,
                      properties: Optional[INESProperties] = None) -> int:
    """Write blob 0 of obj as PRG-ROM and blob 0 of chr_object as CHR-ROM."""
    chr_rom = chr_object.blobs[0] if chr_object is not None else None
    return write_ines(stream, obj.blobs[0], chr_rom, properties)


def read_ines(stream: BinaryIO,
              properties: Optional[INESProperties] = None) -> ObjectFile:
    """
    Read an iNES image into a PRG blob and a CHR blob.

    Args:
        stream: Binary input stream positioned at the magic
        properties: When given, filled in from the header

    Returns:
        ObjectFile with PRG-ROM in blob 0 and CHR-ROM in blob 1

    Raises:
        FormatError: If the magic is wrong or the stream is shorter than the
            header declares
    """
    header = stream.read(INES_HEADER_LENGTH)
    if not is_ines(header):
        raise FormatError("Not an iNES file (bad magic)")
    if len(header) < INES_HEADER_LENGTH:
        raise FormatError("Truncated iNES header")

    props = INESProperties.from_header_data(header[INES_MAGIC_LENGTH:])

    prg_length = props.prg_rom_banks * PRG_ROM_UNIT
    chr_length = props.chr_rom_banks * CHR_ROM_UNIT

    prg = stream.read(prg_length)
    chr_data = stream.read(chr_length)
    if len(prg) < prg_length or len(chr_data) < chr_length:
        raise FormatError(
            f"Truncated iNES file: header declares {prg_length} PRG and "
            f"{chr_length} CHR bytes"
        )

    obj = ObjectFile(PRG_ROM_ORIGIN)
    obj.blobs[0].data.extend(prg)
    chr_index = obj.add_blob(CHR_ROM_ORIGIN)
    obj.blobs[chr_index].data.extend(chr_data)

    if properties is not None:
        properties.prg_rom_banks = props.prg_rom_banks
        properties.chr_rom_banks = props.chr_rom_banks
        properties.flags6 = props.flags6
        properties.flags7 = props.flags7
        properties.video = props.video

    logger.debug(
        f"Read iNES image: {props.prg_rom_banks} PRG bank(s), "
        f"{props.chr_rom_banks} CHR bank(s)"
    )
    return obj
