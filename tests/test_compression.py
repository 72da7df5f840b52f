"""Tests for tern.server.compression: Accept-Encoding negotiation."""

import gzip
import zlib

import brotli
import pytest

from tern.server.compression import (
    COMPRESSIBLE_EXTENSIONS,
    Encoding,
    compress,
    compress_sync,
    is_compressible,
    negotiate_encoding,
)

PAYLOAD = b"tern " * 500


class TestNegotiate:
    @pytest.mark.parametrize(
        ("header", "expected"),
        [
            ("br, gzip", Encoding.BROTLI),
            ("gzip, br", Encoding.BROTLI),
            ("gzip, deflate", Encoding.GZIP),
            ("deflate", Encoding.DEFLATE),
            ("GZIP", Encoding.GZIP),
            ("gzip;q=0.1, br;q=0.9", Encoding.BROTLI),
            ("identity", None),
            ("", None),
            (None, None),
        ],
    )
    def test_priority(self, header: str | None, expected: Encoding | None) -> None:
        assert negotiate_encoding(header) == expected

    def test_low_weight_does_not_reorder(self) -> None:
        assert negotiate_encoding("br;q=0.1, gzip;q=1.0") == Encoding.BROTLI

    def test_explicit_refusal_is_honored(self) -> None:
        assert negotiate_encoding("br;q=0, gzip") == Encoding.GZIP

    def test_everything_refused(self) -> None:
        assert negotiate_encoding("br;q=0, gzip;q=0, deflate;q=0") is None

    def test_encoding_values_are_header_tokens(self) -> None:
        assert [e.value for e in Encoding] == ["br", "gzip", "deflate"]


class TestCompressible:
    def test_text_formats(self) -> None:
        for ext in (".html", ".css", ".js", ".json", ".svg", ".txt"):
            assert is_compressible(ext)

    def test_binary_formats(self) -> None:
        for ext in (".png", ".jpg", ".woff2", ".gz", ""):
            assert not is_compressible(ext)

    def test_case_insensitive(self) -> None:
        assert is_compressible(".CSS")

    def test_all_entries_are_dotted(self) -> None:
        assert all(ext.startswith(".") for ext in COMPRESSIBLE_EXTENSIONS)


class TestCompress:
    def test_brotli(self) -> None:
        out = compress_sync(PAYLOAD, Encoding.BROTLI)
        assert len(out) < len(PAYLOAD)
        assert brotli.decompress(out) == PAYLOAD

    def test_gzip(self) -> None:
        assert gzip.decompress(compress_sync(PAYLOAD, Encoding.GZIP)) == PAYLOAD

    def test_deflate_uses_zlib_container(self) -> None:
        assert zlib.decompress(compress_sync(PAYLOAD, Encoding.DEFLATE)) == PAYLOAD

    @pytest.mark.parametrize("level", [1, 9])
    def test_levels(self, level: int) -> None:
        assert brotli.decompress(compress_sync(PAYLOAD, Encoding.BROTLI, level)) == PAYLOAD

    async def test_async_matches_sync(self) -> None:
        assert gzip.decompress(await compress(PAYLOAD, Encoding.GZIP)) == PAYLOAD
