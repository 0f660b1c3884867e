"""
Reference-counted key material.

A SharedKey owns the key object. Every holder gets its own KeyRef; releasing a
KeyRef drops exactly one reference however often it is called, so a careless
holder can never tear down the key under another one.
"""

from typing import Generic, TypeVar

import structlog

from wpgp.exceptions import CryptoError

logger = structlog.get_logger(__name__)

K = TypeVar("K")


class SharedKey(Generic[K]):
    """
    Key object plus the number of live holders.

    The key is dropped when the last KeyRef is released.

    Example:
        ```python
        first = SharedKey(private_key).hold()   # 1 holder
        second = first.share()                  # 2 holders
        first.release()
        first.release()                         # no-op, still 1 holder
        second.release()                        # 0 holders, key dropped
        ```
    """

    def __init__(self, key: K) -> None:
        self._key: K | None = key
        self._holders = 0

    @property
    def key(self) -> K:
        """
        Raises:
            CryptoError: If every holder has released the key.
        """
        if self._key is None:
            msg = "Key material has been released"
            raise CryptoError(msg)
        return self._key

    def hold(self) -> "KeyRef[K]":
        """
        Register a new holder.

        Raises:
            CryptoError: If the key has already been dropped.
        """
        if self._key is None:
            msg = "Cannot share released key material"
            raise CryptoError(msg)
        self._holders += 1
        return KeyRef(self)

    def _drop(self) -> None:
        self._holders -= 1
        if self._holders == 0:
            self._key = None
            logger.debug("Released key material")

    def __repr__(self) -> str:
        state = "released" if self._key is None else f"{self._holders} holders"
        return f"{self.__class__.__name__}({state})"


class KeyRef(Generic[K]):
    """One holder's handle on a SharedKey."""

    __slots__ = ("_shared", "_released")

    def __init__(self, shared: SharedKey[K]) -> None:
        self._shared = shared
        self._released = False

    @property
    def key(self) -> K:
        """
        Raises:
            CryptoError: If this handle or every handle has been released.
        """
        if self._released:
            msg = "Key handle has been released"
            raise CryptoError(msg)
        return self._shared.key

    def share(self) -> "KeyRef[K]":
        """
        Return a new handle on the same key.

        Raises:
            CryptoError: If this handle has been released.
        """
        if self._released:
            msg = "Cannot share from a released key handle"
            raise CryptoError(msg)
        return self._shared.hold()

    def release(self) -> None:
        """Drop this handle's reference. Later calls do nothing."""
        if self._released:
            return
        self._released = True
        self._shared._drop()

    def __repr__(self) -> str:
        state = "released" if self._released else repr(self._shared)
        return f"{self.__class__.__name__}({state})"
