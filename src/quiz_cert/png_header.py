"""
png_header.py — Read template dimensions from the PNG IHDR chunk
================================================================
A standard PNG starts with an 8-byte signature, then the IHDR chunk
(4-byte length, 4-byte type "IHDR"), so the big-endian uint32 width and
height always sit at byte offsets 16 and 20.  Only those first 24 bytes
are read; pixel data is never decoded.
"""

from __future__ import annotations

import struct
from typing import BinaryIO, Union

from quiz_cert.errors import InvalidImage

HEADER_SIZE    = 24
MAX_DIMENSION  = 10_000

_WIDTH_HEIGHT = struct.Struct(">II")


def read_png_dimensions(source: Union[bytes, bytearray, memoryview, BinaryIO]) -> tuple[int, int]:
    """
    Return ``(width, height)`` in pixels for a PNG byte buffer or binary stream.

    Raises InvalidImage when fewer than 24 bytes are available or when either
    dimension is zero or above MAX_DIMENSION (a sign the input is not a PNG).
    """
    if isinstance(source, (bytes, bytearray, memoryview)):
        head = bytes(source[:HEADER_SIZE])
    else:
        head = source.read(HEADER_SIZE)

    if len(head) < HEADER_SIZE:
        raise InvalidImage(f"Invalid PNG or buffer too small (got {len(head)} bytes)")

    width, height = _WIDTH_HEIGHT.unpack_from(head, 16)
    if not width or not height or width > MAX_DIMENSION or height > MAX_DIMENSION:
        raise InvalidImage(
            f"Invalid PNG dimensions: {width}x{height}. File may not be a valid PNG."
        )
    return width, height
