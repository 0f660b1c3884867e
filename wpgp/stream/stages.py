"""
Composable byte transforms for the streaming pipelines.

Each stage accepts input of any length through `update()` and returns
whatever output is complete so far. `finalize()` flushes what is left and is
called exactly once.
"""

import base64
import binascii
from collections.abc import Sequence
from typing import Protocol

from wpgp.container.mask import apply_mask
from wpgp.crypto.aes import AesDecryptor, AesEncryptor
from wpgp.exceptions import FormatError
from wpgp.models.crypto import SessionKey


class Stage(Protocol):
    def update(self, data: bytes) -> bytes: ...

    def finalize(self) -> bytes: ...


class CipherStage:
    """AES-256-ECB encryption or decryption with PKCS7 padding."""

    def __init__(self, cipher: AesEncryptor | AesDecryptor) -> None:
        self._cipher = cipher

    @classmethod
    def encrypting(cls, session_key: SessionKey) -> "CipherStage":
        return cls(AesEncryptor(session_key))

    @classmethod
    def decrypting(cls, session_key: SessionKey) -> "CipherStage":
        return cls(AesDecryptor(session_key))

    def update(self, data: bytes) -> bytes:
        return self._cipher.update(data)

    def finalize(self) -> bytes:
        return self._cipher.finalize()


class MaskStage:
    """Positional XOR that keeps its place across chunks."""

    def __init__(self, mask: bytes) -> None:
        self._mask = mask
        self._offset = 0

    @property
    def offset(self) -> int:
        return self._offset

    def update(self, data: bytes) -> bytes:
        masked = apply_mask(data, self._mask, self._offset)
        self._offset += len(data)
        return masked

    def finalize(self) -> bytes:
        return b""


class Base64EncodeStage:
    """Base64 encoder emitting only whole 3-byte groups until finalized."""

    def __init__(self) -> None:
        self._pending = b""

    def update(self, data: bytes) -> bytes:
        data = self._pending + data
        cut = len(data) - len(data) % 3
        self._pending = data[cut:]
        return base64.b64encode(data[:cut])

    def finalize(self) -> bytes:
        tail, self._pending = self._pending, b""
        return base64.b64encode(tail)


class Base64DecodeStage:
    """
    Base64 decoder consuming only whole 4-character groups.

    Raises:
        FormatError: On invalid characters, or on a partial group at finalize.
    """

    def __init__(self) -> None:
        self._pending = b""

    @property
    def pending(self) -> int:
        return len(self._pending)

    def update(self, data: bytes) -> bytes:
        data = self._pending + data
        cut = len(data) - len(data) % 4
        self._pending = data[cut:]
        return self._decode(data[:cut])

    def finalize(self) -> bytes:
        if self._pending:
            msg = "Body ends with a partial base64 group"
            raise FormatError(msg, pending=len(self._pending))
        return b""

    @staticmethod
    def _decode(data: bytes) -> bytes:
        if not data:
            return b""
        try:
            return base64.b64decode(data, validate=True)
        except binascii.Error as e:
            msg = f"Body is not valid base64: {e}"
            raise FormatError(msg) from e


class StageChain:
    """
    Feeds the output of each stage into the next.

    On `finalize()` every stage is flushed in order, with the flushed output of
    earlier stages pushed through the later ones first.
    """

    def __init__(self, stages: Sequence[Stage]) -> None:
        self._stages = list(stages)

    def update(self, data: bytes) -> bytes:
        for stage in self._stages:
            data = stage.update(data)
        return data

    def finalize(self) -> bytes:
        data = b""
        for stage in self._stages:
            data = stage.update(data) + stage.finalize()
        return data
