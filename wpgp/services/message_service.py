"""
Encryption and decryption of whole in-memory messages.
"""

import structlog

from wpgp.config import WpgpConfig
from wpgp.container.verifier import inspect_container
from wpgp.crypto.protocol import AsymmetricBackend
from wpgp.crypto.rsa_backend import RsaBackend
from wpgp.models.identity import ContainerType, Identity
from wpgp.stream.pipeline import DecryptPipeline, EncryptPipeline

logger = structlog.get_logger(__name__)


class MessageService:
    """
    One-shot message encryption built on the streaming pipelines, so a
    message container and a stream container are the same bytes format.
    """

    def __init__(
        self,
        backend: AsymmetricBackend | None = None,
        config: WpgpConfig | None = None,
    ) -> None:
        self._config = config or WpgpConfig()
        self._backend = backend or RsaBackend(self._config.public_exponent)

    def encrypt_message(self, identity: Identity, plaintext: bytes) -> bytes:
        """
        Encrypt `plaintext` for `identity`.

        A public-only identity is enough: only the public half is used.

        Returns:
            A MESSAGE container.

        Raises:
            CryptoError: If the header cannot be wrapped.
        """
        with EncryptPipeline(self._backend, identity) as pipeline:
            return pipeline.advance(plaintext) + pipeline.finalize()

    def decrypt_message(self, identity: Identity, container: bytes) -> bytes:
        """
        Verify and decrypt a MESSAGE container.

        Args:
            identity: Private identity the message was encrypted for.
            container: Container bytes.

        Returns:
            The plaintext.

        Raises:
            FormatError: If the container is malformed or not a message.
            IntegrityError: If the digest or the plaintext length does not match.
            DecryptError: If the identity is public-only or the wrong key.
        """
        verified = inspect_container(container, ContainerType.MESSAGE)
        with DecryptPipeline(self._backend, identity, verified) as pipeline:
            plaintext = pipeline.advance(verified.trailer.body.slice(container))
            plaintext += pipeline.finalize()
        logger.debug("Decrypted message container", length=len(container))
        return plaintext
