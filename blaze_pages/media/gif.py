"""Byte-level animated GIF detection.

The detector walks the GIF block structure directly instead of decoding any
pixels: signature, logical screen descriptor, optional global color table,
then one block at a time until the trailer. A stream with more than one image
descriptor is animated.
"""

from __future__ import annotations

GIF_SIGNATURES = (b"GIF87a", b"GIF89a")
IMAGE_DESCRIPTOR = 0x2C
EXTENSION_INTRODUCER = 0x21
TRAILER = 0x3B

_HEADER_LENGTH = 13
_IMAGE_DESCRIPTOR_LENGTH = 10


def _color_table_size(packed: int) -> int:
    """Return the byte length of a color table flagged in ``packed``."""
    if not packed & 0x80:
        return 0
    return 3 * (1 << ((packed & 0x07) + 1))


def _skip_sub_blocks(data: bytes, offset: int) -> int | None:
    """Return the offset after a run of data sub-blocks, or None if truncated."""
    while offset < len(data):
        size = data[offset]
        offset += 1
        if size == 0:
            return offset
        offset += size
    return None


def count_image_descriptors(data: bytes) -> int:
    """Count image descriptor blocks in a GIF byte stream.

    Parameters
    ----------
    data : bytes
        Raw file contents.

    Returns
    -------
    int
        Number of ``0x2C`` image descriptors encountered before the trailer,
        a truncated block, or an unrecognized block stopped the walk. Returns
        ``0`` for streams without a GIF signature.
    """
    if len(data) < _HEADER_LENGTH or data[:6] not in GIF_SIGNATURES:
        return 0

    offset = _HEADER_LENGTH + _color_table_size(data[10])
    frames = 0
    while offset < len(data):
        block = data[offset]
        if block == TRAILER:
            break
        if block == IMAGE_DESCRIPTOR:
            if offset + _IMAGE_DESCRIPTOR_LENGTH > len(data):
                break
            frames += 1
            packed = data[offset + 9]
            offset += _IMAGE_DESCRIPTOR_LENGTH + _color_table_size(packed)
            # LZW minimum code size precedes the image data sub-blocks.
            offset += 1
            next_offset = _skip_sub_blocks(data, offset)
        elif block == EXTENSION_INTRODUCER:
            next_offset = _skip_sub_blocks(data, offset + 2)
        else:
            break
        if next_offset is None:
            break
        offset = next_offset
    return frames


def is_animated_gif(data: bytes) -> bool:
    """Return True when ``data`` is a GIF with more than one frame.

    Examples
    --------
    >>> is_animated_gif(b"not a gif")
    False
    """
    return count_image_descriptors(data) > 1


__all__ = ["count_image_descriptors", "is_animated_gif"]
