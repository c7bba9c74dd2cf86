"""Buffer manager: the entry point between a byte source and the parser.

The manager owns one stream's whole decoding state: the raw and output
buffers, the detected encoding, the stream offset and the EOF flag. Callers
ask for a minimum number of decoded scalars with :meth:`BufferManager.ensure`
and then read them through :meth:`peek`, :meth:`prefix` and :meth:`forward`
(or the raw :meth:`unread_view`).

Once the source is exhausted and every byte has been decoded, a single NUL
scalar is appended as the end-of-stream sentinel.

A manager is not thread-safe and ``ensure`` is not reentrant.
"""

from typing import Any, Iterator, Optional

from streaming_unicode_reader.shared.config import ReaderConfig
from streaming_unicode_reader.shared.logging import CorrelationLogger, get_logger
from streaming_unicode_reader.shared.result import ReaderMetrics

from .buffers import RawByteBuffer, TextOutputBuffer
from .decoder import Incomplete, Invalid, ScalarDecoder, encode_utf8
from .encoding import DetectionResult, Encoding, EncodingDetector
from .errors import StreamDecodeError
from .policy import ContentPolicy, get_policy
from .sources import ByteSource, close_source, make_source

SENTINEL = 0x00


class BufferManager:
    """Incremental decoder feeding a bounded buffer of UTF-8 text."""

    def __init__(
        self,
        source: Any,
        config: Optional[ReaderConfig] = None,
        policy: Optional[ContentPolicy] = None,
        logger: Optional[CorrelationLogger] = None,
    ) -> None:
        """Initialize the manager with empty buffers.

        Args:
            source: A ``ByteSource`` or any input accepted by ``make_source``
            config: Reader configuration (buffer sizes, content policy)
            policy: Content policy overriding ``config.content_policy``
            logger: Logger to use instead of the module logger
        """
        self.config = config or ReaderConfig()
        self._owns_source = not isinstance(source, ByteSource)
        self._source: ByteSource = make_source(source)
        self.policy = policy or get_policy(self.config.content_policy)
        self.logger = logger or get_logger(
            __name__, self.config.correlation_id, "buffer_manager"
        )

        self.raw = RawByteBuffer(self.config.buffers.raw_buffer_size)
        self.output = TextOutputBuffer(self.config.buffers.effective_output_size)
        self.metrics = ReaderMetrics()

        self._detector = EncodingDetector()
        self._decoder: Optional[ScalarDecoder] = None
        self._detection: Optional[DetectionResult] = None
        self.offset = 0
        self._terminated = False
        self._error: Optional[StreamDecodeError] = None

    # State

    @property
    def encoding(self) -> Encoding:
        if self._detection is None:
            return Encoding.UNKNOWN
        return self._detection.encoding

    @property
    def bom_length(self) -> int:
        return self._detection.bom_length if self._detection else 0

    @property
    def eof(self) -> bool:
        return self.raw.eof

    @property
    def finished(self) -> bool:
        """True once the end-of-stream sentinel has been appended."""
        return self._terminated

    @property
    def unread(self) -> int:
        return self.output.unread

    @property
    def error(self) -> Optional[StreamDecodeError]:
        """The fatal error that stopped this stream, if any."""
        return self._error

    # Buffering

    def ensure(self, min_unread: int) -> None:
        """Make at least ``min_unread`` decoded scalars available.

        Fewer scalars may be available afterwards only when the stream has
        ended; the last one is then the NUL sentinel.

        Args:
            min_unread: Number of unread scalars the caller needs

        Raises:
            DecoderError: If the input is not valid in the detected encoding
            ReaderError: If the byte source fails
            ValueError: If ``min_unread`` is negative
        """
        if min_unread < 0:
            raise ValueError("min_unread must be >= 0")
        if self._error is not None:
            raise self._error

        if self.raw.eof and self.raw.is_empty:
            return
        if self.output.unread >= min_unread:
            return

        try:
            if self._detection is None:
                self._determine_encoding()

            if self.output.compact():
                self.metrics.compactions += 1

            while self.output.unread < min_unread:
                self._refill()
                self._decode_available()

                if self.raw.eof:
                    self._terminate()
                    return
        except StreamDecodeError as e:
            self._fail(e)
            raise

    def _determine_encoding(self) -> None:
        result = self._detector.detect(self.raw, self._refill)
        self._detection = result
        self.offset += result.bom_length
        self._decoder = ScalarDecoder(result.encoding, self.policy)
        self.logger.info(
            "Detected stream encoding",
            extra={
                "encoding": result.encoding.value,
                "bom_length": result.bom_length,
            },
        )

    def _refill(self) -> None:
        produced = self.raw.refill(self._source, self.offset)
        self.metrics.refills += 1
        self.metrics.bytes_read += produced
        if not produced:
            self.metrics.empty_refills += 1
        if self.logger.is_debug_enabled:
            self.logger.debug(
                "Refilled raw buffer",
                extra={
                    "produced": produced,
                    "raw_available": self.raw.available,
                    "eof": self.raw.eof,
                    "offset": self.offset,
                },
            )

    def _decode_available(self) -> None:
        """Decode scalars until the raw buffer is drained or a scalar is incomplete."""
        raw = self.raw
        output = self.output
        decode = self._decoder.decode
        growths = output.growths
        decoded = 0
        written = 0

        while raw.pointer != raw.length:
            outcome = decode(raw.buffer, raw.pointer, raw.length, raw.eof, self.offset)
            if isinstance(outcome, Incomplete):
                break
            if isinstance(outcome, Invalid):
                raise outcome.to_error()

            raw.pointer += outcome.width
            self.offset += outcome.width
            encoded = encode_utf8(outcome.value)
            output.append(encoded)
            decoded += 1
            written += len(encoded)

        self.metrics.scalars_decoded += decoded
        self.metrics.output_bytes += written
        if output.growths != growths:
            self.metrics.output_growths += output.growths - growths
            self.logger.debug(
                "Grew output buffer",
                extra={"capacity": output.capacity, "unread": output.unread},
            )

    def _terminate(self) -> None:
        if self._terminated:
            return
        self.output.append(encode_utf8(SENTINEL))
        self._terminated = True
        self.metrics.mark_finished()
        self.logger.debug(
            "Reached end of stream",
            extra={"offset": self.offset, "scalars": self.metrics.scalars_decoded},
        )

    def _fail(self, error: StreamDecodeError) -> None:
        self._error = error
        self.metrics.mark_finished()
        self.logger.error(
            "Stream decoding failed",
            extra={
                "error_kind": error.kind,
                "error_reason": error.reason.name if error.reason else None,
                "error_offset": error.offset,
                "error_value": error.value,
            },
            exc_info=False,
        )

    # Reading

    def unread_view(self) -> memoryview:
        """Read-only view of the unread UTF-8 bytes.

        The view reflects the buffer as it is now; the next ``ensure`` may
        compact the buffer and change what the view shows.
        """
        return self.output.view()

    def peek(self, index: int = 0) -> str:
        """Return the unread character ``index`` positions ahead without consuming.

        Raises:
            IndexError: If fewer than ``index + 1`` scalars are buffered
                or ``index`` is negative
        """
        output = self.output
        if index < 0 or index >= output.unread:
            raise IndexError(
                f"Requested scalar {index} but only {output.unread} are buffered"
            )
        position = output.pointer + output.span(index)
        width = output.scalar_width(position)
        return output.buffer[position:position + width].decode("utf-8")

    def prefix(self, length: int = 1) -> str:
        """Return the next ``length`` unread characters without consuming them.

        Raises:
            IndexError: If ``length`` is negative or exceeds the buffered scalars
        """
        output = self.output
        size = output.span(length)
        return output.buffer[output.pointer:output.pointer + size].decode("utf-8")

    def forward(self, length: int = 1) -> None:
        """Consume ``length`` unread characters.

        Raises:
            IndexError: If ``length`` is negative or exceeds the buffered scalars
        """
        self.output.consume(length)

    def iter_chunks(self, batch: int = 4096) -> Iterator[str]:
        """Yield the rest of the stream as text chunks, sentinel excluded.

        Raises:
            DecoderError: If the input is invalid; chunks before the error
                have already been yielded
            ReaderError: If the byte source fails
        """
        if batch <= 0:
            raise ValueError("batch must be > 0")
        while True:
            try:
                self.ensure(batch)
            except StreamDecodeError:
                count = self.output.unread
                if count:
                    text = self.prefix(count)
                    self.forward(count)
                    yield text
                raise
            count = self.output.unread
            if self._terminated:
                if count:
                    text = self.prefix(count - 1)
                    self.forward(count)
                    if text:
                        yield text
                return
            text = self.prefix(count)
            self.forward(count)
            yield text

    # Lifecycle

    def close(self) -> None:
        """Release the byte source if this manager created it."""
        if self._owns_source:
            close_source(self._source)
            self._owns_source = False

    def __enter__(self) -> "BufferManager":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def __repr__(self) -> str:
        return (
            f"BufferManager(encoding={self.encoding.name}, offset={self.offset}, "
            f"unread={self.output.unread}, eof={self.raw.eof}, "
            f"finished={self._terminated})"
        )
