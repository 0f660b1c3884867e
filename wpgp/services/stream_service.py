"""
Streaming encryption and decryption.

Streams are async generators of StreamEvent: any number of DataEvent, then
exactly one CloseEvent or ErrorEvent. Failures never escape as exceptions;
they end the stream with an ErrorEvent. The `*_pipe` helpers write the data
to a sink and raise the error instead.

Decryption needs the trailer, which sits at the end of the container. Path
and seekable file sources are read in place; anything else is spooled first.
The whole container is verified before any plaintext is emitted.

Each stream takes its own handle on the identity's key when it is created
and drops it when it ends, so streams do not depend on the caller keeping
the identity alive.
"""

import asyncio
import io
import tempfile
from collections.abc import AsyncGenerator, AsyncIterable, Iterator
from contextlib import AsyncExitStack, contextmanager
from pathlib import Path
from typing import BinaryIO

import structlog

from wpgp.config import WpgpConfig
from wpgp.container.verifier import inspect_file, read_exact
from wpgp.crypto.protocol import AsymmetricBackend
from wpgp.crypto.rsa_backend import RsaBackend
from wpgp.exceptions import CryptoError, StreamError
from wpgp.models.identity import ContainerType, Identity
from wpgp.models.stream import CloseEvent, DataEvent, ErrorEvent, StreamEvent
from wpgp.stream.pipeline import DecryptPipeline, EncryptPipeline

logger = structlog.get_logger(__name__)

Source = AsyncIterable[bytes] | BinaryIO | str | Path
Sink = BinaryIO | str | Path


class StreamService:
    """
    Incremental encryption and decryption over async byte sources.

    Pipelines are created per call, so one service (and one identity) can
    drive any number of concurrent streams.

    Example:
        ```python
        streams = StreamService()
        async for event in streams.encrypt_stream(identity, "report.pdf"):
            match event:
                case DataEvent(chunk=chunk):
                    out.write(chunk)
                case ErrorEvent(kind=kind, message=message):
                    print(f"failed: {kind}: {message}")
        ```
    """

    def __init__(
        self,
        backend: AsymmetricBackend | None = None,
        config: WpgpConfig | None = None,
    ) -> None:
        self._config = config or WpgpConfig()
        self._backend = backend or RsaBackend(self._config.public_exponent)

    def encrypt_stream(
        self, identity: Identity, source: Source
    ) -> AsyncGenerator[StreamEvent, None]:
        """
        Encrypt `source` for `identity`.

        The stream takes its own handle on the identity's key right away, so
        it can be consumed after the caller has released the identity.

        Args:
            identity: Recipient; a public-only identity is enough.
            source: Async iterable of chunks, binary file or path.

        Returns:
            An async generator yielding DataEvent for each piece of container
            output, then CloseEvent or ErrorEvent.
        """
        try:
            held = identity.share()
        except CryptoError as e:
            return self._failed("encrypt", e)
        return self._encrypt_events(held, source)

    def decrypt_stream(
        self,
        identity: Identity,
        source: Source,
        *,
        today: int | None = None,
    ) -> AsyncGenerator[StreamEvent, None]:
        """
        Verify and decrypt a MESSAGE container from `source`.

        Like `encrypt_stream`, the stream holds its own key handle from the
        moment it is created.

        Args:
            identity: Private identity the message was encrypted for.
            source: Async iterable of chunks, binary file or path.
            today: Day number passed to the verifier. Defaults to today.

        Returns:
            An async generator yielding DataEvent for each piece of plaintext,
            then CloseEvent or ErrorEvent. Nothing is yielded before the digest
            is verified.
        """
        try:
            held = identity.share()
        except CryptoError as e:
            return self._failed("decrypt", e)
        return self._decrypt_events(held, source, today)

    async def _encrypt_events(
        self, identity: Identity, source: Source
    ) -> AsyncGenerator[StreamEvent, None]:
        pipeline: EncryptPipeline | None = None
        try:
            pipeline = EncryptPipeline(self._backend, identity)
            async for chunk in self._iter_source(source):
                body = pipeline.advance(chunk)
                if body:
                    yield DataEvent(body)
            tail = pipeline.finalize()
        except Exception as e:
            yield self._error_event("encrypt", e)
            return
        finally:
            if pipeline is not None:
                pipeline.close()
            identity.release()

        yield DataEvent(tail)
        logger.debug("Encrypt stream closed", size=pipeline.plaintext_length)
        yield CloseEvent()

    async def _decrypt_events(
        self, identity: Identity, source: Source, today: int | None
    ) -> AsyncGenerator[StreamEvent, None]:
        chunk_size = self._config.chunk_size
        pipeline: DecryptPipeline | None = None
        try:
            async with AsyncExitStack() as stack:
                handle = await self._open_seekable(source, stack)
                verified = inspect_file(
                    handle, ContainerType.MESSAGE, today=today, chunk_size=chunk_size
                )
                pipeline = DecryptPipeline(self._backend, identity, verified)
                handle.seek(verified.trailer.body.start)
                while pipeline.remaining > 0:
                    chunk = read_exact(handle, min(chunk_size, pipeline.remaining))
                    plaintext = pipeline.advance(chunk)
                    if plaintext:
                        yield DataEvent(plaintext)
                    await asyncio.sleep(0)
                tail = pipeline.finalize()
        except Exception as e:
            yield self._error_event("decrypt", e)
            return
        finally:
            if pipeline is not None:
                pipeline.close()
            identity.release()

        if tail:
            yield DataEvent(tail)
        logger.debug("Decrypt stream closed", size=pipeline.expected_size)
        yield CloseEvent()

    async def _failed(
        self, operation: str, error: Exception
    ) -> AsyncGenerator[StreamEvent, None]:
        yield self._error_event(operation, error)

    @staticmethod
    def _error_event(operation: str, error: Exception) -> ErrorEvent:
        event = ErrorEvent.from_exception(error)
        logger.warning(
            "Stream failed", operation=operation, kind=event.kind.value, reason=event.message
        )
        return event

    async def encrypt_pipe(self, identity: Identity, source: Source, sink: Sink) -> None:
        """
        Encrypt `source` into `sink`.

        A path sink is removed again if the stream fails.

        Raises:
            WpgpError: The error that ended the stream.
        """
        with _open_sink(sink) as writer:
            await self._drain(self.encrypt_stream(identity, source), writer)

    async def decrypt_pipe(
        self,
        identity: Identity,
        source: Source,
        sink: Sink,
        *,
        today: int | None = None,
    ) -> None:
        """
        Decrypt `source` into `sink`.

        A path sink is removed again if the stream fails, so no partial
        plaintext is left behind.

        Raises:
            WpgpError: The error that ended the stream.
        """
        with _open_sink(sink) as writer:
            await self._drain(self.decrypt_stream(identity, source, today=today), writer)

    @staticmethod
    async def _drain(events: AsyncGenerator[StreamEvent, None], writer: BinaryIO) -> None:
        try:
            async for event in events:
                match event:
                    case DataEvent(chunk=chunk):
                        writer.write(chunk)
                    case ErrorEvent(error=error) if error is not None:
                        raise error
                    case ErrorEvent(message=message):
                        raise StreamError(message)
                    case CloseEvent():
                        return
        finally:
            await events.aclose()

    async def _iter_source(self, source: Source) -> AsyncGenerator[bytes, None]:
        if isinstance(source, (str, Path)):
            with open(source, "rb") as handle:
                async for chunk in self._iter_file(handle):
                    yield chunk
        elif isinstance(source, AsyncIterable):
            async for chunk in source:
                yield chunk
        else:
            async for chunk in self._iter_file(source):
                yield chunk

    async def _iter_file(self, handle: BinaryIO) -> AsyncGenerator[bytes, None]:
        while chunk := handle.read(self._config.chunk_size):
            yield chunk
            await asyncio.sleep(0)

    async def _open_seekable(self, source: Source, stack: AsyncExitStack) -> BinaryIO:
        if isinstance(source, (str, Path)):
            return stack.enter_context(open(source, "rb"))
        if not isinstance(source, AsyncIterable) and source.seekable():
            return source

        spool = stack.enter_context(
            tempfile.SpooledTemporaryFile(max_size=self._config.spool_max_size)
        )
        async for chunk in self._iter_source(source):
            spool.write(chunk)
        logger.debug("Spooled decrypt source", size=spool.tell())
        spool.seek(0, io.SEEK_SET)
        return spool


@contextmanager
def _open_sink(sink: Sink) -> Iterator[BinaryIO]:
    if not isinstance(sink, (str, Path)):
        yield sink
        return

    path = Path(sink)
    writer = open(path, "wb")
    try:
        with writer:
            yield writer
    except BaseException:
        path.unlink(missing_ok=True)
        logger.debug("Removed partial output", path=str(path))
        raise
