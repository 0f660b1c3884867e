"""
WPGP exception hierarchy.

All exceptions inherit from WpgpError for easy catching. Each class carries an
ErrorKind so streaming pipelines can turn any raised error into an error event.
"""

from enum import StrEnum
from typing import Any


class ErrorKind(StrEnum):
    """Category of a failure surfaced through an error event."""

    FORMAT = "format"
    INTEGRITY = "integrity"
    EXPIRED = "expired"
    CRYPTO = "crypto"
    DECRYPT = "decrypt"
    STREAM = "stream"
    IO = "io"
    INTERNAL = "internal"


class WpgpError(Exception):
    """Base exception for all wpgp errors."""

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        if self.context:
            ctx = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} ({ctx})"
        return self.message


class FormatError(WpgpError):
    """Malformed container: bad tag, bad offsets, unparseable or mismatched header."""

    kind = ErrorKind.FORMAT


class IntegrityError(FormatError):
    """Digest or length verification failed."""

    kind = ErrorKind.INTEGRITY


class ExpiredKeyError(FormatError):
    """The container's key has passed its validity window."""

    kind = ErrorKind.EXPIRED

    def __init__(self, message: str, *, created_day: int, validity_days: int) -> None:
        super().__init__(message, created_day=created_day, validity_days=validity_days)
        self.created_day = created_day
        self.validity_days = validity_days


class CryptoError(WpgpError):
    """Cryptographic operation failed."""

    kind = ErrorKind.CRYPTO


class DecryptError(CryptoError):
    """Asymmetric or symmetric decryption failed (wrong key, passphrase or data)."""

    kind = ErrorKind.DECRYPT


class KeyGenerationError(CryptoError):
    """Keypair generation was refused or failed."""


class StreamError(WpgpError):
    """A pipeline was driven out of order."""

    kind = ErrorKind.STREAM
