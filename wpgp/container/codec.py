"""
Key container encoding and decoding.

A key container's body is the serialized key (PEM) and its header the
identity metadata as compact JSON. Both are masked and base64-encoded with a
mask drawn fresh for every export.
"""

import structlog

from wpgp.container.mask import generate_mask
from wpgp.container.segments import assemble_container, decode_segment, encode_segment
from wpgp.container.verifier import inspect_container
from wpgp.core.secure_bytes import SecureBytes
from wpgp.core.shared import SharedKey
from wpgp.crypto.protocol import AsymmetricBackend
from wpgp.exceptions import CryptoError, FormatError
from wpgp.models.container import KeyHeader
from wpgp.models.identity import ContainerType, Identity

logger = structlog.get_logger(__name__)


def encode_key_container(
    backend: AsymmetricBackend,
    identity: Identity,
    container_type: ContainerType,
    passphrase: SecureBytes | None = None,
    *,
    mask: bytes | None = None,
) -> bytes:
    """
    Export an identity as a key container.

    Args:
        backend: Backend that owns the identity's key.
        identity: Identity to export.
        container_type: PRIVATE or PUBLIC.
        passphrase: Optional passphrase protecting a PRIVATE export at rest.
        mask: Obfuscation mask. A fresh random mask is drawn when omitted.

    Returns:
        The container bytes.

    Raises:
        ValueError: If `container_type` is MESSAGE.
        CryptoError: If a PRIVATE export is requested from a public-only identity.
    """
    if container_type == ContainerType.PRIVATE:
        if not identity.is_private or not backend.is_private(identity.key.key):
            msg = "Cannot export a private key from a public-only identity"
            raise CryptoError(msg)
        payload = backend.serialize_private(identity.key.key, passphrase)
    elif container_type == ContainerType.PUBLIC:
        payload = backend.serialize_public(identity.key.key)
    else:
        msg = f"Cannot encode a {container_type} container from an identity"
        raise ValueError(msg)

    mask = mask if mask is not None else generate_mask()
    header = KeyHeader(
        name=identity.name,
        mail=identity.mail,
        comment=identity.comment,
        expiration=identity.expiration,
        size=identity.key_size,
        type=container_type,
    )
    container = assemble_container(
        mask,
        body=encode_segment(payload, mask),
        header=encode_segment(header.to_json(), mask),
    )
    logger.debug("Encoded key container", type=container_type.value, length=len(container))
    return container


def decode_key_container(
    backend: AsymmetricBackend,
    data: bytes,
    expected_type: ContainerType,
    passphrase: SecureBytes | None = None,
    *,
    today: int | None = None,
) -> Identity:
    """
    Import an identity from a key container.

    Args:
        backend: Backend used to load the key.
        data: Container bytes.
        expected_type: PRIVATE or PUBLIC; the header type must match.
        passphrase: Passphrase for a protected PRIVATE export.
        today: Day number for the expiration check. Defaults to today.

    Returns:
        A new Identity owning the loaded key.

    Raises:
        FormatError: If verification fails or the container has the wrong type.
        IntegrityError: If the digest does not match.
        ExpiredKeyError: If the key has expired.
        DecryptError: If the passphrase is missing or wrong.
    """
    if expected_type == ContainerType.MESSAGE:
        msg = "Message containers do not hold identities"
        raise ValueError(msg)

    verified = inspect_container(data, expected_type, today=today)
    key_header = verified.key_header
    if key_header is None:
        msg = "Key container has no metadata header"
        raise FormatError(msg)

    payload = decode_segment(verified.trailer.body.slice(data), verified.trailer.mask)
    if expected_type == ContainerType.PRIVATE:
        key = backend.deserialize_private(payload, passphrase)
        if not backend.is_private(key):
            msg = "PRIVATE container does not hold private key material"
            raise FormatError(msg)
    else:
        key = backend.deserialize_public(payload)

    if backend.key_size(key) != key_header.size:
        msg = "Key size does not match header"
        raise FormatError(msg, header=key_header.size, key=backend.key_size(key))

    logger.debug("Decoded key container", type=expected_type.value, size=key_header.size)
    return Identity(
        name=key_header.name,
        mail=key_header.mail,
        comment=key_header.comment,
        key_size=key_header.size,
        expiration=key_header.expiration,
        is_private=backend.is_private(key),
        key=SharedKey(key).hold(),
    )
