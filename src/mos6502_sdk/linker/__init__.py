"""
6502 Linker
===========

Merges assembled objects and their symbol sidecars into a single iNES
image. See mos6502_sdk.linker.linker for the algorithm.
"""

from mos6502_sdk.linker.linker import LinkResult, Linker

__all__ = [
    "LinkResult",
    "Linker",
]
