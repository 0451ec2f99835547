"""Tests for the request body size limit."""

import pytest

from services.pushwatch.app.api.deps import read_body_limited
from services.pushwatch.app.core.exceptions import PayloadTooLargeError


class _StubRequest:
    def __init__(self, chunks: list[bytes], headers: dict[str, str] | None = None):
        self.headers = headers or {}
        self._chunks = chunks
        self.chunks_read = 0

    async def stream(self):
        for chunk in self._chunks:
            self.chunks_read += 1
            yield chunk


class TestReadBodyLimited:
    @pytest.mark.asyncio
    async def test_returns_body_within_limit(self):
        request = _StubRequest([b'{"a":', b" 1}"], {"content-length": "8"})

        assert await read_body_limited(request, 16) == b'{"a": 1}'

    @pytest.mark.asyncio
    async def test_body_exactly_at_limit_accepted(self):
        request = _StubRequest([b"x" * 16])

        assert await read_body_limited(request, 16) == b"x" * 16

    @pytest.mark.asyncio
    async def test_declared_length_over_limit_refused_before_reading(self):
        request = _StubRequest([b"x" * 64], {"content-length": "64"})

        with pytest.raises(PayloadTooLargeError, match="exceeds 16 bytes") as exc_info:
            await read_body_limited(request, 16)

        assert exc_info.value.status_code == 413
        assert request.chunks_read == 0

    @pytest.mark.asyncio
    async def test_undeclared_body_cut_off_mid_stream(self):
        request = _StubRequest([b"x" * 10, b"x" * 10, b"x" * 10, b"x" * 10])

        with pytest.raises(PayloadTooLargeError):
            await read_body_limited(request, 16)

        assert request.chunks_read == 2

    @pytest.mark.asyncio
    async def test_understated_length_still_enforced(self):
        request = _StubRequest([b"x" * 32], {"content-length": "4"})

        with pytest.raises(PayloadTooLargeError):
            await read_body_limited(request, 16)
