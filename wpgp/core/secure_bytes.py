"""Zeroable buffer for short-lived secrets (session keys, passphrases, header blobs)."""

import ctypes
import hmac
from typing import Self


def wipe(buffer: bytearray) -> None:
    """Overwrite `buffer` with zeros in place."""
    size = len(buffer)
    if size:
        view = (ctypes.c_char * size).from_buffer(buffer)
        ctypes.memset(ctypes.addressof(view), 0, size)


class SecureBytes:
    """
    Mutable secret buffer that is wiped on `clear()`, on context exit and on
    garbage collection.

    The buffer is a private copy, so wiping never touches the caller's data.
    Comparison is constant-time and hashing is refused, which keeps secrets
    out of dict keys and sets.

    Example:
        ```python
        with SecureBytes.from_string("hunter2") as passphrase:
            backend.serialize_private(key, passphrase)
        ```
    """

    __slots__ = ("_data", "_cleared")

    def __init__(self, data: bytes | bytearray) -> None:
        self._data = bytearray(data)
        self._cleared = False

    @classmethod
    def from_string(cls, value: str, encoding: str = "utf-8") -> Self:
        """Encode `value`; the intermediate encoding is wiped afterwards."""
        scratch = bytearray(value, encoding)
        try:
            return cls(scratch)
        finally:
            wipe(scratch)

    @property
    def is_cleared(self) -> bool:
        return self._cleared

    def clear(self) -> None:
        """Zero the buffer. Safe to call more than once."""
        if not self._cleared:
            wipe(self._data)
            self._cleared = True

    def reveal(self) -> bytes:
        """
        Return an immutable copy of the secret.

        The copy is ordinary `bytes` and is not wiped; keep its lifetime short.

        Raises:
            RuntimeError: If the buffer has already been cleared.
        """
        if self._cleared:
            msg = "Secret buffer was already wiped"
            raise RuntimeError(msg)
        return bytes(self._data)

    def __bytes__(self) -> bytes:
        return self.reveal()

    def __len__(self) -> int:
        return len(self._data)

    def __bool__(self) -> bool:
        return bool(self._data) and not self._cleared

    def __eq__(self, other: object) -> bool:
        if isinstance(other, SecureBytes):
            other_data: bytes | bytearray = other._data
            live = not other._cleared
        elif isinstance(other, (bytes, bytearray)):
            other_data, live = other, True
        else:
            return NotImplemented
        return live and not self._cleared and hmac.compare_digest(self._data, other_data)

    def __hash__(self) -> int:
        msg = "SecureBytes is not hashable"
        raise TypeError(msg)

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *_: object) -> None:
        self.clear()

    def __del__(self) -> None:
        self.clear()

    def __repr__(self) -> str:
        state = "wiped" if self._cleared else f"{len(self._data)} bytes"
        return f"SecureBytes(<{state}>)"
