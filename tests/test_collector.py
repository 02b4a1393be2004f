"""Tests for the bounded response body collector."""

import pytest

from core.collector import ResponseBodyCollector
from core.exceptions import PayloadTooLarge


async def _stream(*chunks):
    for chunk in chunks:
        yield chunk


class TestResponseBodyCollector:
    """Test ResponseBodyCollector."""

    def test_chunks_are_kept_in_order(self):
        collector = ResponseBodyCollector(100)

        for chunk in (b"ab", b"", b"cd", b"e"):
            collector.on_chunk(chunk)

        assert collector.output == b"abcde"
        assert collector.size == 5

    def test_text_chunks_are_utf8_encoded(self):
        collector = ResponseBodyCollector(100)

        collector.on_chunk("é")
        collector.on_chunk(b"!")

        assert collector.output == "é!".encode("utf-8")

    def test_limit_is_inclusive(self):
        collector = ResponseBodyCollector(4)

        collector.on_chunk(b"abcd")

        assert collector.size == 4

    def test_exceeding_limit_raises(self):
        collector = ResponseBodyCollector(4)
        collector.on_chunk(b"abc")

        with pytest.raises(PayloadTooLarge) as exc_info:
            collector.on_chunk(b"de")

        assert exc_info.value.limit == 4
        assert exc_info.value.size == 5

    @pytest.mark.asyncio
    async def test_collect_drains_stream(self):
        collector = ResponseBodyCollector(100)

        assert await collector.collect(_stream(b"{", b'"a":1', b"}")) == b'{"a":1}'

    @pytest.mark.asyncio
    async def test_collect_stops_on_oversize_chunk(self):
        seen = []

        async def stream():
            for chunk in (b"aaa", b"bbb", b"ccc"):
                seen.append(chunk)
                yield chunk

        with pytest.raises(PayloadTooLarge):
            await ResponseBodyCollector(5).collect(stream())

        assert seen == [b"aaa", b"bbb"]
