"""
WPGP configuration.
"""

from dataclasses import dataclass


@dataclass(frozen=True, kw_only=True)
class WpgpConfig:
    """
    Attributes:
        default_key_size: RSA modulus size in bits used when none is requested.
        min_key_size: Smallest RSA modulus accepted for new identities.
        public_exponent: RSA public exponent for generated keys.
        max_validity_days: Upper bound applied to a requested validity window.
        chunk_size: Number of bytes read from a source per pipeline step.
        spool_max_size: Bytes of a non-seekable decrypt source held in memory
            before spilling to a temporary file.
    """

    default_key_size: int = 2048
    min_key_size: int = 1024
    public_exponent: int = 65537
    max_validity_days: int = 365
    chunk_size: int = 64 * 1024
    spool_max_size: int = 8 * 1024 * 1024

    def __post_init__(self) -> None:
        if self.min_key_size < 1024:
            msg = "min_key_size must be at least 1024"
            raise ValueError(msg)
        if self.default_key_size < self.min_key_size:
            msg = "default_key_size must not be below min_key_size"
            raise ValueError(msg)
        if self.public_exponent not in (3, 65537):
            msg = "public_exponent must be 3 or 65537"
            raise ValueError(msg)
        if not 0 < self.max_validity_days <= 365:
            msg = "max_validity_days must be between 1 and 365"
            raise ValueError(msg)
        if self.chunk_size <= 0:
            msg = "chunk_size must be positive"
            raise ValueError(msg)
        if self.spool_max_size < 0:
            msg = "spool_max_size must be non-negative"
            raise ValueError(msg)
