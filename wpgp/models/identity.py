"""
Identity domain models.
"""

from dataclasses import dataclass, field, replace
from enum import StrEnum
from typing import Any, Self

from wpgp.core.shared import KeyRef


class ContainerType(StrEnum):
    """Value of the `type` field in a container header."""

    PRIVATE = "PRIVATE"
    PUBLIC = "PUBLIC"
    MESSAGE = "MESSAGE"


@dataclass(frozen=True, slots=True)
class Expiration:
    """
    Validity window of a key, counted in days since the Unix epoch.

    Attributes:
        created_day: Day the key was created, or 0 when it never expires.
        validity_days: Length of the window, or 0 when it never expires.
    """

    created_day: int = 0
    validity_days: int = 0

    def __post_init__(self) -> None:
        if self.created_day < 0 or self.validity_days < 0:
            msg = "Expiration fields must be non-negative"
            raise ValueError(msg)

    @classmethod
    def starting(cls, today: int, validity_days: int, max_validity_days: int = 365) -> Self:
        """Window opening on `today`, clamped to `max_validity_days`; 0 means never."""
        if validity_days < 0:
            msg = "validity_days must be non-negative"
            raise ValueError(msg)
        if validity_days == 0:
            return cls()
        return cls(created_day=today, validity_days=min(validity_days, max_validity_days))

    @classmethod
    def from_json(cls, value: Any) -> Self:
        """
        Parse the `[day, days]` header form.

        Raises:
            ValueError: If the value is not a pair of non-negative integers.
        """
        if not isinstance(value, list) or len(value) != 2:
            msg = f"Expiration must be a [day, days] pair, got {value!r}"
            raise ValueError(msg)
        day, days = value
        if type(day) is not int or type(days) is not int:
            msg = f"Expiration fields must be integers, got {value!r}"
            raise ValueError(msg)
        return cls(created_day=day, validity_days=days)

    @property
    def never_expires(self) -> bool:
        return self.created_day == 0 or self.validity_days == 0

    def is_expired(self, today: int) -> bool:
        if self.never_expires:
            return False
        return self.created_day + self.validity_days < today

    def as_list(self) -> list[int]:
        return [self.created_day, self.validity_days]


@dataclass(frozen=True, kw_only=True)
class Identity:
    """
    A keypair (or public key) bound to human-readable metadata.

    Identities are pure data. Each one holds its own KeyRef on a SharedKey, so
    several identities can refer to one loaded key. The key lives until the
    last of them is released; releasing one identity twice counts once.

    Attributes:
        name: Free-form owner name.
        mail: Free-form owner mail.
        comment: Free-form comment.
        key_size: RSA modulus size in bits.
        expiration: Validity window.
        is_private: Whether the key holds private material.
        key: This identity's handle on the underlying key object.
    """

    name: str
    mail: str
    comment: str
    key_size: int
    expiration: Expiration
    is_private: bool
    key: KeyRef[Any] = field(compare=False, repr=False)

    def share(self) -> "Identity":
        """Return another handle on the same key, extending its lifetime."""
        return replace(self, key=self.key.share())

    def public(self) -> "Identity":
        """Return a public-only handle on the same key and metadata."""
        return replace(self, is_private=False, key=self.key.share())

    def release(self) -> None:
        """Drop this identity's reference on the key. Idempotent, never raises."""
        self.key.release()

    def is_expired(self, today: int) -> bool:
        return self.expiration.is_expired(today)
