"""
Domain models for WPGP.

These are immutable (frozen) dataclasses representing the core domain concepts.
"""

from wpgp.models.container import (
    DIGEST_SIZE,
    FORMAT_TAG,
    MASK_SIZE,
    KeyHeader,
    MessageHeader,
    Segment,
    Trailer,
)
from wpgp.models.crypto import SessionKey, SymmetricAlgorithm
from wpgp.models.identity import ContainerType, Expiration, Identity
from wpgp.models.stream import CloseEvent, DataEvent, ErrorEvent, StreamEvent

__all__ = [
    # Identity
    "ContainerType",
    "Expiration",
    "Identity",
    # Container
    "DIGEST_SIZE",
    "FORMAT_TAG",
    "MASK_SIZE",
    "KeyHeader",
    "MessageHeader",
    "Segment",
    "Trailer",
    # Crypto
    "SessionKey",
    "SymmetricAlgorithm",
    # Stream
    "CloseEvent",
    "DataEvent",
    "ErrorEvent",
    "StreamEvent",
]
