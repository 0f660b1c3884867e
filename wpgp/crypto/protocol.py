"""
Asymmetric backend protocol definition.

This defines the interface for keypair operations, allowing different
implementations to be swapped without changing the codec or the pipelines.
"""

from typing import Any, Protocol, runtime_checkable

from wpgp.core.secure_bytes import SecureBytes


@runtime_checkable
class AsymmetricBackend(Protocol):
    """
    Abstract interface for keypair generation, wrapping and serialization.

    Key objects are opaque to callers; only the backend that produced them
    inspects them.
    """

    def generate(self, key_size: int) -> Any:
        """
        Generate a new private key.

        Args:
            key_size: Modulus size in bits.

        Raises:
            KeyGenerationError: If the size is unsupported or generation fails.
        """
        ...

    def is_private(self, key: Any) -> bool:
        """Whether `key` holds private material."""
        ...

    def key_size(self, key: Any) -> int:
        """Modulus size of `key` in bits."""
        ...

    def encrypt(self, key: Any, data: bytes) -> bytes:
        """
        Encrypt `data` with the public half of `key`.

        Raises:
            CryptoError: If encryption fails.
        """
        ...

    def decrypt(self, key: Any, data: bytes) -> bytes:
        """
        Decrypt `data` with the private `key`.

        Raises:
            DecryptError: If the key is public-only or decryption fails.
        """
        ...

    def serialize_private(self, key: Any, passphrase: SecureBytes | None = None) -> bytes:
        """
        Serialize the private key, optionally protected by a passphrase.

        Raises:
            CryptoError: If `key` is public-only.
        """
        ...

    def serialize_public(self, key: Any) -> bytes:
        """Serialize the public half of `key`."""
        ...

    def deserialize_private(self, data: bytes, passphrase: SecureBytes | None = None) -> Any:
        """
        Load a private key.

        Raises:
            FormatError: If the data is not a supported private key.
            DecryptError: If the passphrase is missing or wrong.
        """
        ...

    def deserialize_public(self, data: bytes) -> Any:
        """
        Load a public key.

        Raises:
            FormatError: If the data is not a supported public key.
        """
        ...

    def key_material(self, key: Any) -> bytes:
        """Canonical unprotected bytes of `key`, used as session-key entropy."""
        ...
