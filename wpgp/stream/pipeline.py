"""
Incremental message encryption and decryption.

EncryptPipeline emits the body as plaintext arrives and closes the container
with header, digest and trailer once the plaintext length is known.
DecryptPipeline takes a container that already passed verification and
turns its body back into plaintext chunk by chunk.

Both pipelines are single-use state machines:

    STREAMING --finalize()--> FINISHED
        |
        +----close()----> CLOSED

Both end states wipe the session key and release the pipeline's own handle
on the identity's key, so the key outlives any other holder that lets go
mid-stream. `close()` may be called at any time.
"""

import hashlib
import hmac
from enum import StrEnum
from typing import Self

import structlog

from wpgp.container.mask import generate_mask
from wpgp.container.segments import encode_segment
from wpgp.container.trailer import pack_trailer
from wpgp.container.verifier import VerifiedContainer
from wpgp.crypto.protocol import AsymmetricBackend
from wpgp.crypto.session_key import derive_session_key, unwrap_message_header, wrap_message_header
from wpgp.exceptions import DecryptError, FormatError, IntegrityError, StreamError
from wpgp.models.container import MessageHeader, Trailer
from wpgp.models.crypto import SessionKey
from wpgp.models.identity import ContainerType, Identity
from wpgp.stream.stages import (
    Base64DecodeStage,
    Base64EncodeStage,
    CipherStage,
    MaskStage,
    StageChain,
)

logger = structlog.get_logger(__name__)


class PipelineState(StrEnum):
    STREAMING = "streaming"
    FINISHED = "finished"
    CLOSED = "closed"


class _Pipeline:
    _session_key: SessionKey

    def __init__(self, identity: Identity) -> None:
        self._state = PipelineState.STREAMING
        self._identity = identity.share()

    @property
    def state(self) -> PipelineState:
        return self._state

    def close(self) -> None:
        """Wipe the session key and release the key handle. Idempotent."""
        self._session_key.clear()
        self._identity.release()
        if self._state == PipelineState.STREAMING:
            self._state = PipelineState.CLOSED

    def _finish(self) -> None:
        self._session_key.clear()
        self._identity.release()
        self._state = PipelineState.FINISHED

    def _require_streaming(self) -> None:
        if self._state == PipelineState.STREAMING:
            return
        msg = f"Pipeline is {self._state}, no more input accepted"
        raise StreamError(msg)

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *_: object) -> None:
        self.close()


class EncryptPipeline(_Pipeline):
    """
    Encrypts a message for `identity` one chunk at a time.

    Example:
        ```python
        with EncryptPipeline(backend, identity) as pipeline:
            for chunk in chunks:
                sink.write(pipeline.advance(chunk))
            sink.write(pipeline.finalize())
        ```
    """

    def __init__(
        self,
        backend: AsymmetricBackend,
        identity: Identity,
        *,
        mask: bytes | None = None,
        session_key: SessionKey | None = None,
    ) -> None:
        """
        Args:
            backend: Backend owning the identity's key.
            identity: Recipient; only its public half is used.
            mask: Obfuscation mask. A fresh random mask is drawn when omitted.
            session_key: Body key. A fresh one is derived when omitted.

        Raises:
            CryptoError: If the identity has been released.
        """
        super().__init__(identity)
        self._backend = backend
        self._mask = mask if mask is not None else generate_mask()
        self._session_key = session_key or derive_session_key(
            backend.key_material(self._identity.key.key)
        )
        self._chain = StageChain(
            [
                CipherStage.encrypting(self._session_key),
                MaskStage(self._mask),
                Base64EncodeStage(),
            ]
        )
        self._digest = hashlib.sha256()
        self._plaintext_length = 0
        self._body_length = 0

    @property
    def plaintext_length(self) -> int:
        return self._plaintext_length

    @property
    def body_length(self) -> int:
        return self._body_length

    def advance(self, chunk: bytes) -> bytes:
        """
        Push plaintext through the pipeline.

        Returns:
            Body bytes ready to be written, possibly empty.

        Raises:
            StreamError: If the pipeline was finalized or closed.
        """
        self._require_streaming()
        self._plaintext_length += len(chunk)
        return self._emit(self._chain.update(chunk))

    def finalize(self) -> bytes:
        """
        Close the container.

        Returns:
            The rest of the body followed by header, digest and trailer.

        Raises:
            StreamError: If the pipeline was finalized or closed.
            CryptoError: If the header cannot be wrapped.
        """
        self._require_streaming()
        tail = self._emit(self._chain.finalize())

        header = MessageHeader(size=self._plaintext_length, session_key=self._session_key)
        encoded_header = encode_segment(
            wrap_message_header(self._backend, self._identity.key.key, header), self._mask
        )
        self._digest.update(encoded_header)
        trailer = Trailer.for_lengths(self._mask, self._body_length, len(encoded_header))

        self._finish()
        logger.debug(
            "Encrypted message",
            size=self._plaintext_length,
            body=self._body_length,
            header=len(encoded_header),
        )
        return tail + encoded_header + self._digest.digest() + pack_trailer(trailer)

    def _emit(self, body: bytes) -> bytes:
        self._digest.update(body)
        self._body_length += len(body)
        return body


class DecryptPipeline(_Pipeline):
    """
    Decrypts the body of a verified message container one chunk at a time.

    Body chunks must be fed in order, starting at the body offset. The running
    digest is checked again on `finalize()`, so a body that changed after
    verification is still rejected.
    """

    def __init__(
        self,
        backend: AsymmetricBackend,
        identity: Identity,
        verified: VerifiedContainer,
    ) -> None:
        """
        Args:
            backend: Backend owning the identity's key.
            identity: Private identity the message was encrypted for.
            verified: Result of verifying the container.

        Raises:
            FormatError: If the container is not a message.
            DecryptError: If the identity is public-only or the header cannot be unwrapped.
            CryptoError: If the identity has been released.
        """
        if verified.container_type != ContainerType.MESSAGE:
            msg = f"Expected {ContainerType.MESSAGE} container, got {verified.container_type}"
            raise FormatError(msg)
        if not identity.is_private:
            msg = "A private identity is required to decrypt"
            raise DecryptError(msg)

        header = unwrap_message_header(backend, identity.key.key, verified.header)
        super().__init__(identity)
        self._session_key = header.session_key
        self._expected_size = header.size
        self._trailer = verified.trailer
        self._encoded_header = verified.encoded_header
        self._stored_digest = verified.digest
        self._chain = StageChain(
            [
                Base64DecodeStage(),
                MaskStage(self._trailer.mask),
                CipherStage.decrypting(self._session_key),
            ]
        )
        self._digest = hashlib.sha256()
        self._offset = self._trailer.body.start
        self._consumed = 0
        self._produced = 0

    @property
    def expected_size(self) -> int:
        return self._expected_size

    @property
    def offset(self) -> int:
        """Container offset of the next body byte."""
        return self._offset

    @property
    def consumed(self) -> int:
        return self._consumed

    @property
    def remaining(self) -> int:
        return self._trailer.body.length - self._consumed

    def advance(self, chunk: bytes) -> bytes:
        """
        Push body bytes through the pipeline.

        Returns:
            Plaintext bytes available so far, possibly empty.

        Raises:
            StreamError: If the pipeline was finalized or closed.
            FormatError: If the chunk runs past the body or is not valid base64.
        """
        self._require_streaming()
        if len(chunk) > self.remaining:
            msg = "Chunk runs past the end of the body"
            raise FormatError(msg, offset=self._offset, length=len(chunk), remaining=self.remaining)

        self._digest.update(chunk)
        self._offset += len(chunk)
        self._consumed += len(chunk)
        plaintext = self._chain.update(chunk)
        self._produced += len(plaintext)
        return plaintext

    def finalize(self) -> bytes:
        """
        Flush the last plaintext block.

        Raises:
            StreamError: If the pipeline was finalized or closed.
            IntegrityError: If the body is incomplete, the digest does not match
                or the plaintext length differs from the header.
            DecryptError: If the padding is invalid.
        """
        self._require_streaming()
        if self.remaining:
            msg = "Body is incomplete"
            raise IntegrityError(msg, missing=self.remaining)

        self._digest.update(self._encoded_header)
        if not hmac.compare_digest(self._digest.digest(), self._stored_digest):
            msg = "Body digest mismatch, data may be corrupted or tampered"
            raise IntegrityError(msg)

        tail = self._chain.finalize()
        self._produced += len(tail)
        if self._produced != self._expected_size:
            msg = "Plaintext length does not match header"
            raise IntegrityError(msg, expected=self._expected_size, got=self._produced)

        self._finish()
        logger.debug("Decrypted message", size=self._produced)
        return tail
