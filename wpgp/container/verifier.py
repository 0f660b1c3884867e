"""
Container verification.

Every decode path goes through `inspect_container` (or `inspect_file` for
seekable streams) before trusting any parsed field. The checks run in order:
trailer and tag, offsets, digest over `body || header`, header metadata,
expiration, expected container type.

Key containers carry a JSON metadata header. Message containers carry a
header wrapped under the recipient's key, so without that key only the
trailer and the digest can be checked.
"""

import hashlib
import hmac
import io
import json
from dataclasses import dataclass
from typing import BinaryIO

import structlog

from wpgp.container.segments import decode_segment
from wpgp.container.trailer import TRAILER_SIZE, unpack_trailer
from wpgp.core.clock import current_day
from wpgp.exceptions import ExpiredKeyError, FormatError, IntegrityError, WpgpError
from wpgp.models.container import DIGEST_SIZE, KeyHeader, Trailer
from wpgp.models.identity import ContainerType

logger = structlog.get_logger(__name__)

_KEY_TYPES = (ContainerType.PRIVATE, ContainerType.PUBLIC)
_DEFAULT_CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True, kw_only=True)
class VerifiedContainer:
    """
    A container that passed verification.

    Attributes:
        trailer: Validated offset table.
        container_type: PRIVATE, PUBLIC or MESSAGE.
        header: Header bytes after decoding and un-obfuscation.
        encoded_header: Header bytes as stored in the container.
        digest: Stored SHA-256 digest over body and header.
        key_header: Parsed metadata for key containers, None for messages.
    """

    trailer: Trailer
    container_type: ContainerType
    header: bytes
    encoded_header: bytes
    digest: bytes
    key_header: KeyHeader | None = None


def inspect_container(
    data: bytes,
    expected_type: ContainerType | None = None,
    *,
    today: int | None = None,
) -> VerifiedContainer:
    """
    Verify an in-memory container.

    Args:
        data: Raw container bytes.
        expected_type: Container type the caller requires, or None to accept any.
        today: Day number used for the expiration check. Defaults to today.

    Returns:
        The verified layout and decoded header.

    Raises:
        FormatError: If the container is malformed or of the wrong type.
        IntegrityError: If the digest does not match.
        ExpiredKeyError: If a key container has expired.
    """
    if not data:
        msg = "Container is empty"
        raise FormatError(msg)
    if len(data) < TRAILER_SIZE:
        msg = f"Container too short: {len(data)} bytes"
        raise FormatError(msg)

    trailer = unpack_trailer(data[-TRAILER_SIZE:], len(data))
    stored = trailer.digest.slice(data)
    _check_digest(hashlib.sha256(trailer.covered.slice(data)).digest(), stored)
    return _classify(trailer, trailer.header.slice(data), stored, expected_type, today)


def inspect_file(
    source: BinaryIO,
    expected_type: ContainerType | None = None,
    *,
    today: int | None = None,
    chunk_size: int = _DEFAULT_CHUNK_SIZE,
) -> VerifiedContainer:
    """
    Verify a container held in a seekable binary file without loading its body.

    The body is hashed in chunks of `chunk_size` bytes. The file position is
    left unspecified.

    Raises:
        FormatError: If the container is malformed, truncated or of the wrong type.
        IntegrityError: If the digest does not match.
        ExpiredKeyError: If a key container has expired.
    """
    size = source.seek(0, io.SEEK_END)
    if size == 0:
        msg = "Container is empty"
        raise FormatError(msg)
    if size < TRAILER_SIZE:
        msg = f"Container too short: {size} bytes"
        raise FormatError(msg)

    source.seek(size - TRAILER_SIZE)
    trailer = unpack_trailer(read_exact(source, TRAILER_SIZE), size)

    digest = hashlib.sha256()
    source.seek(trailer.body.start)
    remaining = trailer.body.length
    while remaining > 0:
        chunk = read_exact(source, min(chunk_size, remaining))
        digest.update(chunk)
        remaining -= len(chunk)
    encoded_header = read_exact(source, trailer.header.length)
    digest.update(encoded_header)
    stored = read_exact(source, DIGEST_SIZE)
    _check_digest(digest.digest(), stored)

    return _classify(trailer, encoded_header, stored, expected_type, today)


def verify_container(
    data: bytes,
    expected_type: ContainerType | None = None,
    *,
    today: int | None = None,
) -> bool:
    """
    Check a container without raising.

    Returns:
        True if `inspect_container` accepts the container, False otherwise.
    """
    try:
        inspect_container(data, expected_type, today=today)
    except WpgpError as e:
        logger.debug("Container rejected", kind=e.kind.value, reason=str(e))
        return False
    except Exception as e:
        logger.warning("Container verification failed unexpectedly", error=str(e))
        return False
    return True


def read_exact(source: BinaryIO, size: int) -> bytes:
    """
    Read exactly `size` bytes.

    Raises:
        FormatError: If the source ends first.
    """
    parts = []
    remaining = size
    while remaining > 0:
        chunk = source.read(remaining)
        if not chunk:
            msg = "Container is truncated"
            raise FormatError(msg, missing=remaining)
        parts.append(chunk)
        remaining -= len(chunk)
    return b"".join(parts)


def _check_digest(computed: bytes, stored: bytes) -> None:
    if hmac.compare_digest(computed, stored):
        return
    msg = "Container digest mismatch, data may be corrupted or tampered"
    raise IntegrityError(msg)


def _classify(
    trailer: Trailer,
    encoded_header: bytes,
    digest: bytes,
    expected_type: ContainerType | None,
    today: int | None,
) -> VerifiedContainer:
    header = decode_segment(encoded_header, trailer.mask)
    key_header = _parse_key_header(header, required=expected_type in _KEY_TYPES)

    if key_header is None:
        container_type = ContainerType.MESSAGE
    else:
        container_type = key_header.type
        if container_type not in _KEY_TYPES:
            msg = f"Key metadata header has invalid type {container_type}"
            raise FormatError(msg)
        _check_expiration(key_header, today)

    if expected_type is not None and container_type != expected_type:
        msg = f"Expected {expected_type} container, got {container_type}"
        raise FormatError(msg, expected=expected_type.value, got=container_type.value)

    return VerifiedContainer(
        trailer=trailer,
        container_type=container_type,
        header=header,
        encoded_header=encoded_header,
        digest=digest,
        key_header=key_header,
    )


def _parse_key_header(header: bytes, *, required: bool) -> KeyHeader | None:
    try:
        data = json.loads(header)
    except ValueError as e:
        if not required:
            return None
        msg = f"Header is not key metadata: {e}"
        raise FormatError(msg) from e

    if not isinstance(data, dict):
        if not required:
            return None
        msg = "Header is not a JSON object"
        raise FormatError(msg)

    try:
        return KeyHeader.from_mapping(data)
    except (KeyError, TypeError, ValueError) as e:
        msg = f"Invalid key header: {e}"
        raise FormatError(msg) from e


def _check_expiration(key_header: KeyHeader, today: int | None) -> None:
    expiration = key_header.expiration
    if not expiration.is_expired(current_day() if today is None else today):
        return
    msg = "Key has expired"
    raise ExpiredKeyError(
        msg,
        created_day=expiration.created_day,
        validity_days=expiration.validity_days,
    )
