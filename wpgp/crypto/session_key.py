"""
Session key derivation and message header wrapping.

A session key is `SHA256(nonce || timestamp || key_material)`: the random
nonce makes every key unique and the identity's key material binds it to the
sender. The key travels inside the message header, which is wrapped whole
under the identity's public key.
"""

import hashlib
import json
import secrets
import time
from typing import Any

import structlog

from wpgp.core.secure_bytes import SecureBytes
from wpgp.crypto.protocol import AsymmetricBackend
from wpgp.exceptions import FormatError
from wpgp.models.container import MessageHeader
from wpgp.models.crypto import SessionKey

logger = structlog.get_logger(__name__)

_NONCE_SIZE = 32


def derive_session_key(key_material: bytes) -> SessionKey:
    """
    Derive a fresh single-use session key.

    Args:
        key_material: Canonical bytes of the identity's key.

    Returns:
        A 32-byte AES-256 session key.
    """
    digest = hashlib.sha256()
    digest.update(secrets.token_bytes(_NONCE_SIZE))
    digest.update(str(time.time_ns()).encode("ascii"))
    digest.update(key_material)
    return SessionKey(key_data=SecureBytes(digest.digest()))


def wrap_message_header(backend: AsymmetricBackend, key: Any, header: MessageHeader) -> bytes:
    """
    Serialize a message header and encrypt it with the public half of `key`.

    Raises:
        CryptoError: If encryption fails.
    """
    blob = SecureBytes(header.to_json())
    with blob:
        return backend.encrypt(key, bytes(blob))


def unwrap_message_header(backend: AsymmetricBackend, key: Any, wrapped: bytes) -> MessageHeader:
    """
    Decrypt a wrapped message header and parse it.

    Args:
        backend: Asymmetric backend owning `key`.
        key: Private key of the recipient.
        wrapped: Header bytes after un-obfuscation and decoding.

    Returns:
        The parsed MessageHeader.

    Raises:
        DecryptError: If the header cannot be decrypted with `key`.
        FormatError: If the decrypted header is not a valid MESSAGE header.
    """
    blob = SecureBytes(backend.decrypt(key, wrapped))
    with blob:
        try:
            data = json.loads(bytes(blob))
        except ValueError as e:
            msg = f"Message header is not valid JSON: {e}"
            raise FormatError(msg) from e
        if not isinstance(data, dict):
            msg = "Message header is not a JSON object"
            raise FormatError(msg)
        try:
            header = MessageHeader.from_mapping(data)
        except (KeyError, TypeError, ValueError) as e:
            msg = f"Invalid message header: {e}"
            raise FormatError(msg) from e
    logger.debug("Unwrapped message header", size=header.size)
    return header
