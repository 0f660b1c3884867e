"""
WPGP client facade.

This is the main entry point for users of the library. A client holds at most
one identity at a time and exposes key management, message encryption and
streaming on top of the services.
"""

from collections.abc import AsyncGenerator
from pathlib import Path
from typing import Self

import structlog

from wpgp.config import WpgpConfig
from wpgp.container.verifier import inspect_container, verify_container
from wpgp.core.secure_bytes import SecureBytes
from wpgp.crypto.protocol import AsymmetricBackend
from wpgp.crypto.rsa_backend import RsaBackend
from wpgp.exceptions import WpgpError
from wpgp.models.identity import ContainerType, Expiration, Identity
from wpgp.models.stream import StreamEvent
from wpgp.services.key_service import KeyService
from wpgp.services.message_service import MessageService
from wpgp.services.stream_service import Sink, Source, StreamService

logger = structlog.get_logger(__name__)

Passphrase = str | bytes | SecureBytes


def _secret(passphrase: Passphrase | None) -> SecureBytes | None:
    if passphrase is None or isinstance(passphrase, SecureBytes):
        return passphrase
    if isinstance(passphrase, str):
        return SecureBytes.from_string(passphrase)
    return SecureBytes(passphrase)


class WpgpClient:
    """
    Client bound to a single identity.

    Example:
        ```python
        with WpgpClient() as alice:
            alice.create_new_user("Alice", "alice@example.com", "laptop", validity_days=30)
            alice.write_public_key("alice.pub")
            alice.write_private_key("alice.key", passphrase="hunter2")

        with WpgpClient() as bob:
            bob.read_public_key("alice.pub")
            sealed = bob.encrypt_message(b"Hello World")

        with WpgpClient() as alice:
            alice.read_private_key("alice.key", passphrase="hunter2")
            assert alice.decrypt_message(sealed) == b"Hello World"
        ```

    Args:
        config: Library configuration. Uses defaults if not provided.
        backend: Asymmetric backend. Defaults to RSA.
    """

    def __init__(
        self,
        config: WpgpConfig | None = None,
        *,
        backend: AsymmetricBackend | None = None,
    ) -> None:
        self._config = config or WpgpConfig()
        self._backend = backend or RsaBackend(self._config.public_exponent)
        self._keys = KeyService(self._backend, self._config)
        self._messages = MessageService(self._backend, self._config)
        self._streams = StreamService(self._backend, self._config)
        self._identity: Identity | None = None

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self, exc_type: type | None, exc_val: BaseException | None, exc_tb: object
    ) -> None:
        self.close()

    def close(self) -> None:
        """Release the loaded identity. Safe to call more than once."""
        if self._identity is None:
            return
        self._identity.release()
        self._identity = None
        logger.debug("Client closed")

    @property
    def identity(self) -> Identity:
        """
        The loaded identity.

        Raises:
            RuntimeError: If no identity has been created or read.
        """
        if self._identity is None:
            msg = "No identity loaded"
            raise RuntimeError(msg)
        return self._identity

    @property
    def has_identity(self) -> bool:
        return self._identity is not None

    @property
    def is_private(self) -> bool:
        return self.identity.is_private

    def _load(self, identity: Identity) -> None:
        if self._identity is not None:
            self._identity.release()
        self._identity = identity

    def create_new_user(
        self,
        name: str,
        mail: str,
        comment: str,
        validity_days: int = 0,
        key_size: int | None = None,
    ) -> None:
        """
        Generate a new identity and make it the loaded one.

        Args:
            name: Owner name.
            mail: Owner mail.
            comment: Free-form comment.
            validity_days: Days the key stays valid, 0 for never.
            key_size: RSA modulus size in bits. Defaults to the configured size.

        Raises:
            KeyGenerationError: If the key size is refused.
            ValueError: If `validity_days` is negative.
        """
        self._load(self._keys.create_identity(name, mail, comment, validity_days, key_size))

    def get_name(self) -> str:
        return self.identity.name

    def get_mail(self) -> str:
        return self.identity.mail

    def get_comment(self) -> str:
        return self.identity.comment

    def get_expiration(self) -> Expiration:
        return self.identity.expiration

    def get_size(self) -> int:
        return self.identity.key_size

    def write_private_key(self, path: str | Path, passphrase: Passphrase | None = None) -> None:
        """
        Write a PRIVATE container to `path`.

        Raises:
            CryptoError: If the loaded identity is public-only.
            OSError: If the file cannot be written.
        """
        Path(path).write_bytes(self.write_private_key_to_memory(passphrase))

    def write_private_key_to_memory(self, passphrase: Passphrase | None = None) -> bytes:
        """
        Raises:
            CryptoError: If the loaded identity is public-only.
        """
        return self._keys.export_private_key(self.identity, _secret(passphrase))

    def write_public_key(self, path: str | Path) -> None:
        Path(path).write_bytes(self.write_public_key_to_memory())

    def write_public_key_to_memory(self) -> bytes:
        return self._keys.export_public_key(self.identity)

    def read_private_key(self, path: str | Path, passphrase: Passphrase | None = None) -> None:
        """
        Load a private identity from a PRIVATE container file.

        Raises:
            OSError: If the file cannot be read.
            FormatError: If the container is malformed or not PRIVATE.
            IntegrityError: If the digest does not match.
            ExpiredKeyError: If the key has expired.
            DecryptError: If the passphrase is missing or wrong.
        """
        self.read_private_key_from_memory(Path(path).read_bytes(), passphrase)

    def read_private_key_from_memory(
        self, data: bytes, passphrase: Passphrase | None = None
    ) -> None:
        self._load(self._keys.import_private_key(data, _secret(passphrase)))

    def read_public_key(self, path: str | Path) -> None:
        """
        Load a public-only identity from a PUBLIC container file.

        Raises:
            OSError: If the file cannot be read.
            FormatError: If the container is malformed or not PUBLIC.
            IntegrityError: If the digest does not match.
            ExpiredKeyError: If the key has expired.
        """
        self.read_public_key_from_memory(Path(path).read_bytes())

    def read_public_key_from_memory(self, data: bytes) -> None:
        self._load(self._keys.import_public_key(data))

    def encrypt_message(self, plaintext: bytes | str) -> bytes:
        """
        Encrypt a message for the loaded identity.

        Strings are encoded as UTF-8.
        """
        if isinstance(plaintext, str):
            plaintext = plaintext.encode("utf-8")
        return self._messages.encrypt_message(self.identity, plaintext)

    def decrypt_message(self, container: bytes) -> bytes:
        """
        Raises:
            FormatError: If the container is malformed or not a message.
            IntegrityError: If the digest or the plaintext length does not match.
            DecryptError: If the loaded identity is public-only or the wrong key.
        """
        return self._messages.decrypt_message(self.identity, container)

    def encrypt_stream(self, source: Source) -> AsyncGenerator[StreamEvent, None]:
        """Encrypt `source` for the loaded identity as a stream of events."""
        return self._streams.encrypt_stream(self.identity, source)

    def decrypt_stream(
        self, source: Source, *, today: int | None = None
    ) -> AsyncGenerator[StreamEvent, None]:
        """Decrypt `source` with the loaded identity as a stream of events."""
        return self._streams.decrypt_stream(self.identity, source, today=today)

    async def encrypt_pipe(self, source: Source, sink: Sink) -> None:
        await self._streams.encrypt_pipe(self.identity, source, sink)

    async def decrypt_pipe(
        self, source: Source, sink: Sink, *, today: int | None = None
    ) -> None:
        await self._streams.decrypt_pipe(self.identity, source, sink, today=today)

    def verify_key(self, path: str | Path, *, today: int | None = None) -> bool:
        """Check that `path` holds a valid, unexpired key container."""
        try:
            data = Path(path).read_bytes()
        except OSError as e:
            logger.debug("Cannot read key container", path=str(path), reason=str(e))
            return False
        return self.verify_key_from_memory(data, today=today)

    def verify_key_from_memory(self, data: bytes, *, today: int | None = None) -> bool:
        """Check that `data` is a valid, unexpired PRIVATE or PUBLIC container."""
        try:
            verified = inspect_container(data, today=today)
        except WpgpError as e:
            logger.debug("Key container rejected", kind=e.kind.value, reason=str(e))
            return False
        return verified.container_type in (ContainerType.PRIVATE, ContainerType.PUBLIC)

    def verify_message(self, data: bytes, *, today: int | None = None) -> bool:
        return verify_container(data, ContainerType.MESSAGE, today=today)
