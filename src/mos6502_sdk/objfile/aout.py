"""
a.out-style Object Format
=========================

Placeholder framing: the first blob is written verbatim and no header is
emitted.
"""

from typing import BinaryIO
import logging

from mos6502_sdk.objfile.object import ObjectFile

logger = logging.getLogger(__name__)


def write_aout(obj: ObjectFile, stream: BinaryIO) -> int:
    """Write blob 0 of an object. Returns the number of bytes written."""
    blob = obj.blobs[0]
    stream.write(bytes(blob.data))
    logger.debug(f"Wrote {len(blob)} bytes (a.out)")
    return len(blob)
