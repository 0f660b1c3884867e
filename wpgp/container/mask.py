"""
XOR obfuscation mask.

The mask is stored in clear in the trailer. It keeps JSON and PEM text out of
plain sight; it is not a cryptographic protection.
"""

import secrets

from wpgp.models.container import MASK_SIZE


def generate_mask() -> bytes:
    return secrets.token_bytes(MASK_SIZE)


def apply_mask(data: bytes, mask: bytes, offset: int = 0) -> bytes:
    """
    XOR `data` with `mask` repeated, as if `data` started at `offset`.

    Applying the same mask at the same offset twice restores the input, and
    masking consecutive chunks with running offsets equals masking their
    concatenation.
    """
    if not data:
        return b""
    if not mask:
        msg = "Mask must not be empty"
        raise ValueError(msg)
    shift = offset % len(mask)
    rotated = mask[shift:] + mask[:shift]
    keystream = (rotated * (len(data) // len(rotated) + 1))[: len(data)]
    masked = int.from_bytes(data, "big") ^ int.from_bytes(keystream, "big")
    return masked.to_bytes(len(data), "big")
