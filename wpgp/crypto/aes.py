"""
AES-256-ECB body encryption with PKCS7 padding.

ECB needs no IV, which keeps the container free of per-message cipher state.
This is only sound because every session key encrypts exactly one message or
stream. The incremental classes accept input of any length and return whole
blocks as they become available.
"""

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from wpgp.exceptions import DecryptError
from wpgp.models.crypto import SessionKey

_BLOCK_BITS = 128


def _cipher(session_key: SessionKey) -> Cipher:
    return Cipher(algorithms.AES(bytes(session_key.key_data)), modes.ECB())


class AesEncryptor:
    """Incremental encryptor: pads on `finalize()`."""

    def __init__(self, session_key: SessionKey) -> None:
        self._encryptor = _cipher(session_key).encryptor()
        self._padder = padding.PKCS7(_BLOCK_BITS).padder()

    def update(self, data: bytes) -> bytes:
        return self._encryptor.update(self._padder.update(data))

    def finalize(self) -> bytes:
        tail = self._encryptor.update(self._padder.finalize())
        return tail + self._encryptor.finalize()


class AesDecryptor:
    """Incremental decryptor: strips padding on `finalize()`."""

    def __init__(self, session_key: SessionKey) -> None:
        self._decryptor = _cipher(session_key).decryptor()
        self._unpadder = padding.PKCS7(_BLOCK_BITS).unpadder()

    def update(self, data: bytes) -> bytes:
        return self._unpadder.update(self._decryptor.update(data))

    def finalize(self) -> bytes:
        """
        Raises:
            DecryptError: If the ciphertext is truncated or the padding is invalid.
        """
        try:
            tail = self._unpadder.update(self._decryptor.finalize())
            return tail + self._unpadder.finalize()
        except ValueError as e:
            msg = "Invalid body padding, possibly wrong key or truncated data"
            raise DecryptError(msg) from e
