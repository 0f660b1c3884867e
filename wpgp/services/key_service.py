"""
Identity lifecycle: creation, export and import.
"""

import structlog

from wpgp.config import WpgpConfig
from wpgp.container.codec import decode_key_container, encode_key_container
from wpgp.core.clock import current_day
from wpgp.core.secure_bytes import SecureBytes
from wpgp.core.shared import SharedKey
from wpgp.crypto.protocol import AsymmetricBackend
from wpgp.crypto.rsa_backend import RsaBackend
from wpgp.exceptions import KeyGenerationError
from wpgp.models.identity import ContainerType, Expiration, Identity

logger = structlog.get_logger(__name__)


class KeyService:
    """
    Creates identities and moves them in and out of key containers.

    Example:
        ```python
        keys = KeyService()
        identity = keys.create_identity("Alice", "alice@example.com", "laptop", validity_days=30)
        exported = keys.export_private_key(identity)
        restored = keys.import_private_key(exported)
        ```
    """

    def __init__(
        self,
        backend: AsymmetricBackend | None = None,
        config: WpgpConfig | None = None,
    ) -> None:
        """
        Args:
            backend: Asymmetric backend. Defaults to RSA.
            config: Library configuration. Uses defaults if not provided.
        """
        self._config = config or WpgpConfig()
        self._backend = backend or RsaBackend(self._config.public_exponent)

    @property
    def backend(self) -> AsymmetricBackend:
        return self._backend

    def create_identity(
        self,
        name: str,
        mail: str,
        comment: str,
        validity_days: int = 0,
        key_size: int | None = None,
        *,
        today: int | None = None,
    ) -> Identity:
        """
        Generate a new keypair bound to the given metadata.

        Args:
            name: Owner name.
            mail: Owner mail.
            comment: Free-form comment.
            validity_days: Days the key stays valid, 0 for never. Clamped to
                the configured maximum.
            key_size: RSA modulus size in bits. Defaults to the configured size.
            today: Creation day. Defaults to today.

        Returns:
            A private Identity.

        Raises:
            KeyGenerationError: If the key size is below the configured minimum
                or generation fails.
            ValueError: If `validity_days` is negative.
        """
        size = key_size if key_size is not None else self._config.default_key_size
        if size < self._config.min_key_size:
            msg = f"Key size must be at least {self._config.min_key_size} bits"
            raise KeyGenerationError(msg, key_size=size)

        expiration = Expiration.starting(
            current_day() if today is None else today,
            validity_days,
            self._config.max_validity_days,
        )
        key = self._backend.generate(size)
        logger.info("Created identity", key_size=size, validity_days=expiration.validity_days)
        return Identity(
            name=name,
            mail=mail,
            comment=comment,
            key_size=size,
            expiration=expiration,
            is_private=True,
            key=SharedKey(key).hold(),
        )

    def export_private_key(
        self, identity: Identity, passphrase: SecureBytes | None = None
    ) -> bytes:
        """
        Raises:
            CryptoError: If the identity is public-only.
        """
        return encode_key_container(self._backend, identity, ContainerType.PRIVATE, passphrase)

    def export_public_key(self, identity: Identity) -> bytes:
        return encode_key_container(self._backend, identity, ContainerType.PUBLIC)

    def import_private_key(
        self,
        data: bytes,
        passphrase: SecureBytes | None = None,
        *,
        today: int | None = None,
    ) -> Identity:
        """
        Load a private identity from a PRIVATE container.

        Raises:
            FormatError: If the container is malformed or not PRIVATE.
            IntegrityError: If the digest does not match.
            ExpiredKeyError: If the key has expired.
            DecryptError: If the passphrase is missing or wrong.
        """
        identity = decode_key_container(
            self._backend, data, ContainerType.PRIVATE, passphrase, today=today
        )
        logger.info("Imported private key", key_size=identity.key_size)
        return identity

    def import_public_key(self, data: bytes, *, today: int | None = None) -> Identity:
        """
        Load a public-only identity from a PUBLIC container.

        Raises:
            FormatError: If the container is malformed or not PUBLIC.
            IntegrityError: If the digest does not match.
            ExpiredKeyError: If the key has expired.
        """
        identity = decode_key_container(self._backend, data, ContainerType.PUBLIC, today=today)
        logger.info("Imported public key", key_size=identity.key_size)
        return identity
