"""
Fixed-size trailer (offset table) closing every container.

Layout, little-endian::

    tag(4) | mask(4) | header.start | header.end | body.start | body.end
           | digest.start | digest.end                      (6 x uint64)

Offsets are untrusted input: `unpack_trailer` checks that the segments are
contiguous, ordered and end exactly where the trailer begins.
"""

import struct

from wpgp.exceptions import FormatError
from wpgp.models.container import DIGEST_SIZE, FORMAT_TAG, Segment, Trailer

_TRAILER = struct.Struct("<4s4s6Q")
TRAILER_SIZE = _TRAILER.size


def pack_trailer(trailer: Trailer) -> bytes:
    return _TRAILER.pack(
        trailer.tag,
        trailer.mask,
        trailer.header.start,
        trailer.header.end,
        trailer.body.start,
        trailer.body.end,
        trailer.digest.start,
        trailer.digest.end,
    )


def unpack_trailer(raw: bytes, container_length: int) -> Trailer:
    """
    Parse and validate a trailer.

    Args:
        raw: Exactly TRAILER_SIZE bytes taken from the end of the container.
        container_length: Total container length in bytes, trailer included.

    Returns:
        The validated Trailer.

    Raises:
        FormatError: If the tag is wrong or the offsets are inconsistent.
    """
    if len(raw) != TRAILER_SIZE:
        msg = f"Trailer must be {TRAILER_SIZE} bytes, got {len(raw)}"
        raise FormatError(msg)

    tag, mask, h_start, h_end, b_start, b_end, d_start, d_end = _TRAILER.unpack(raw)
    if tag != FORMAT_TAG:
        msg = f"Invalid format tag: {tag!r}"
        raise FormatError(msg)

    trailer = Trailer(
        tag=tag,
        mask=mask,
        header=Segment(h_start, h_end),
        body=Segment(b_start, b_end),
        digest=Segment(d_start, d_end),
    )
    _validate_offsets(trailer, container_length)
    return trailer


def _validate_offsets(trailer: Trailer, container_length: int) -> None:
    body, header, digest = trailer.body, trailer.header, trailer.digest
    ordered = body.start == 0 and body.start <= body.end == header.start <= header.end
    if not ordered or digest.start != header.end:
        msg = "Container segments are not contiguous"
        raise FormatError(
            msg,
            body=(body.start, body.end),
            header=(header.start, header.end),
            digest=(digest.start, digest.end),
        )
    if digest.length != DIGEST_SIZE:
        msg = f"Digest segment must be {DIGEST_SIZE} bytes, got {digest.length}"
        raise FormatError(msg)
    if digest.end + TRAILER_SIZE != container_length:
        msg = "Container segments do not end at the trailer"
        raise FormatError(msg, expected=container_length - TRAILER_SIZE, got=digest.end)