"""
Flat Binary Format
==================

Raw bytes with no header. Segment load addresses are not recorded, so a
flat file read back always yields a single blob at address 0; the symbol
sidecar, when present, restores the origin.
"""

from typing import BinaryIO
import logging

from mos6502_sdk.objfile.object import ObjectFile

logger = logging.getLogger(__name__)


def stored_blob_index(lengths: list[int]) -> int:
    """
    Index of the blob a flat file holds, given the length of every blob.

    That is the last non-empty blob, or the last blob when all are empty.
    """
    for index in range(len(lengths) - 1, -1, -1):
        if lengths[index]:
            return index
    return len(lengths) - 1


def write_flat(obj: ObjectFile, stream: BinaryIO) -> int:
    """
    Write the final non-empty blob of an object verbatim.

    Warns when more than one blob holds data, since everything but the
    written segment is lost.

    Returns:
        Number of bytes written
    """
    populated = obj.non_empty_blobs()
    if len(populated) > 1:
        logger.warning(
            "Writing flat file with multiple segments will result in loss of object data"
        )

    blob = obj.blobs[stored_blob_index([len(b) for b in obj.blobs])]
    stream.write(bytes(blob.data))
    logger.debug(f"Wrote {len(blob)} bytes (flat, origin ${blob.start:04X})")
    return len(blob)


def read_flat(stream: BinaryIO) -> ObjectFile:
    """Read an entire stream into a single blob at address 0."""
    obj = ObjectFile(0)
    obj.blobs[0].data.extend(stream.read())
    logger.debug(f"Read {obj.size} bytes (flat)")
    return obj
