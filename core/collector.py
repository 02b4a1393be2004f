"""Buffer a streamed upstream body with a hard size limit."""

from collections.abc import AsyncIterable

from core.exceptions import PayloadTooLarge


class ResponseBodyCollector:
    """Accumulate body chunks in arrival order.

    The limit is checked after every append; exceeding it raises
    PayloadTooLarge immediately.
    """

    def __init__(self, max_size: int):
        self.max_size = max_size
        self._buffer = bytearray()

    @property
    def output(self) -> bytes:
        return bytes(self._buffer)

    @property
    def size(self) -> int:
        return len(self._buffer)

    def on_chunk(self, chunk: bytes | str) -> None:
        """Append a chunk; text is encoded as UTF-8."""
        if isinstance(chunk, str):
            chunk = chunk.encode("utf-8")
        self._buffer.extend(chunk)
        if len(self._buffer) > self.max_size:
            raise PayloadTooLarge(self.max_size, len(self._buffer))

    async def collect(self, stream: AsyncIterable[bytes | str]) -> bytes:
        """Drain ``stream``; stops reading on the first oversize chunk."""
        async for chunk in stream:
            self.on_chunk(chunk)
        return self.output
