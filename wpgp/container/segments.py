"""Segment encoding and container assembly."""

import base64
import binascii
import hashlib

from wpgp.container.mask import apply_mask
from wpgp.container.trailer import pack_trailer
from wpgp.exceptions import FormatError
from wpgp.models.container import Trailer


def encode_segment(payload: bytes, mask: bytes) -> bytes:
    """Obfuscate then base64-encode a header or body payload."""
    return base64.b64encode(apply_mask(payload, mask))


def decode_segment(segment: bytes, mask: bytes) -> bytes:
    """
    Reverse `encode_segment`.

    Raises:
        FormatError: If the segment is not valid base64.
    """
    try:
        decoded = base64.b64decode(segment, validate=True)
    except binascii.Error as e:
        msg = f"Segment is not valid base64: {e}"
        raise FormatError(msg) from e
    return apply_mask(decoded, mask)


def assemble_container(mask: bytes, body: bytes, header: bytes) -> bytes:
    """
    Lay out `body | header | digest | trailer`.

    Args:
        mask: Mask the segments were encoded with.
        body: Encoded body segment.
        header: Encoded header segment.

    Returns:
        The complete container.
    """
    trailer = Trailer.for_lengths(mask, len(body), len(header))
    digest = hashlib.sha256(body + header).digest()
    return body + header + digest + pack_trailer(trailer)
