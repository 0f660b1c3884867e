"""
WPGP container format.

    body | header | digest | trailer

- body and header are masked and base64-encoded
- digest is SHA-256 over body followed by header
- trailer is a fixed-size table holding the tag, the mask and segment offsets
"""

from wpgp.container.codec import decode_key_container, encode_key_container
from wpgp.container.mask import apply_mask, generate_mask
from wpgp.container.segments import assemble_container, decode_segment, encode_segment
from wpgp.container.trailer import TRAILER_SIZE, pack_trailer, unpack_trailer
from wpgp.container.verifier import (
    VerifiedContainer,
    inspect_container,
    inspect_file,
    verify_container,
)

__all__ = [
    "TRAILER_SIZE",
    "VerifiedContainer",
    "apply_mask",
    "assemble_container",
    "decode_key_container",
    "decode_segment",
    "encode_key_container",
    "encode_segment",
    "generate_mask",
    "inspect_container",
    "inspect_file",
    "pack_trailer",
    "unpack_trailer",
    "verify_container",
]
