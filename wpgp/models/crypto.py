"""
Session keys and the symmetric algorithms they are bound to.
"""

import base64
import binascii
from dataclasses import dataclass
from enum import StrEnum
from typing import Self

from wpgp.core.secure_bytes import SecureBytes


class SymmetricAlgorithm(StrEnum):
    """Symmetric ciphers usable for a message body."""

    AES_256_ECB = "AES-256-ECB"

    @property
    def key_size(self) -> int:
        """Key length in bytes."""
        match self:
            case self.AES_256_ECB:
                return 32
            case _:
                return 0

    @property
    def block_size(self) -> int:
        """Cipher block length in bytes, also the PKCS7 padding unit."""
        match self:
            case self.AES_256_ECB:
                return 16
            case _:
                return 0


@dataclass(frozen=True, kw_only=True)
class SessionKey:
    """
    Single-use symmetric key for one message or stream.

    Attributes:
        key_data: The raw key bytes, wiped by `clear()`.
        algorithm: The symmetric algorithm the key is meant for.
    """

    key_data: SecureBytes
    algorithm: SymmetricAlgorithm = SymmetricAlgorithm.AES_256_ECB

    def __post_init__(self) -> None:
        expected = self.algorithm.key_size
        if len(self.key_data) == expected:
            return
        actual = len(self.key_data)
        msg = f"Key size mismatch: {self.algorithm.name} expects {expected} bytes, got {actual}"
        raise ValueError(msg)

    @classmethod
    def from_text(cls, text: str) -> Self:
        """
        Rebuild a key from its header `pass` form.

        Raises:
            ValueError: If the text is not valid base64 of the right length.
        """
        try:
            raw = base64.b64decode(text.encode("ascii"), validate=True)
        except (binascii.Error, UnicodeEncodeError) as e:
            msg = f"Invalid session key encoding: {e}"
            raise ValueError(msg) from e
        return cls(key_data=SecureBytes(raw))

    def to_text(self) -> str:
        """Header `pass` form. Warning: the returned string is not wiped."""
        return base64.b64encode(bytes(self.key_data)).decode("ascii")

    @property
    def block_size(self) -> int:
        return self.algorithm.block_size

    def clear(self) -> None:
        self.key_data.clear()
