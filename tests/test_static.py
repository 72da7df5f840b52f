"""Tests for static file serving."""

import gzip
import os
import zlib
from pathlib import Path

import pytest

from tern.app import App
from tern.config import AppConfig
from tern.middleware.static import CONTENT_TYPES, StaticFiles, content_type_for
from tern.testing import TestClient


class TestContentTypes:
    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("index.html", "text/html"),
            ("app.JS", "application/javascript"),
            ("data.json", "application/json"),
            ("logo.svg", "image/svg+xml"),
            ("photo.jpeg", "image/jpeg"),
            ("archive.tar.gz", "application/octet-stream"),
            ("README", "application/octet-stream"),
        ],
    )
    def test_lookup(self, name: str, expected: str) -> None:
        assert content_type_for(name) == expected

    def test_table_keys_are_lowercase_extensions(self) -> None:
        assert all(key.startswith(".") and key == key.lower() for key in CONTENT_TYPES)


class TestResolve:
    def test_trailing_slash_appends_index(self, public_dir: Path) -> None:
        static = StaticFiles(public_dir)
        assert static.resolve("/docs/") == (public_dir / "docs" / "index.html").resolve()

    def test_custom_index(self, public_dir: Path) -> None:
        static = StaticFiles(public_dir, index="home.htm")
        assert static.resolve("/") == (public_dir / "home.htm").resolve()

    def test_parent_escape(self, public_dir: Path) -> None:
        assert StaticFiles(public_dir).resolve("/../secret.txt") is None

    def test_deep_escape(self, public_dir: Path) -> None:
        assert StaticFiles(public_dir).resolve("/docs/../../secret.txt") is None

    def test_dotdot_inside_root_is_fine(self, public_dir: Path) -> None:
        resolved = StaticFiles(public_dir).resolve("/docs/../style.css")
        assert resolved == (public_dir / "style.css").resolve()

    def test_nul_byte(self, public_dir: Path) -> None:
        assert StaticFiles(public_dir).resolve("/index.html\x00.png") is None

    @pytest.mark.skipif(not hasattr(os, "symlink"), reason="needs symlinks")
    def test_symlink_out_of_root(self, public_dir: Path) -> None:
        link = public_dir / "leak.txt"
        try:
            link.symlink_to(public_dir.parent / "secret.txt")
        except OSError:
            pytest.skip("symlinks not permitted here")
        assert StaticFiles(public_dir).resolve("/leak.txt") is None


class TestServe:
    async def test_nested_index(self, app: App) -> None:
        async with TestClient(app) as client:
            response = await client.get("/docs/")

        assert response.status == 200
        assert response.text == "<h1>docs</h1>"

    async def test_directory_without_slash_is_404(self, app: App) -> None:
        async with TestClient(app) as client:
            response = await client.get("/docs")

        assert response.status == 404

    async def test_unknown_extension(self, app: App) -> None:
        async with TestClient(app) as client:
            response = await client.get("/blob.unknownext")

        assert response.status == 200
        assert response.content_type == "application/octet-stream"
        assert response.body == b"\x00\x01\x02"

    async def test_images_are_never_compressed(self, app: App, public_dir: Path) -> None:
        async with TestClient(app) as client:
            response = await client.get("/logo.png", headers={"accept-encoding": "br, gzip"})

        assert response.header("content-encoding") is None
        assert response.content_type == "image/png"
        assert response.body == (public_dir / "logo.png").read_bytes()

    async def test_gzip(self, app: App, public_dir: Path) -> None:
        async with TestClient(app) as client:
            response = await client.get("/style.css", headers={"accept-encoding": "gzip"})

        assert response.header("content-encoding") == "gzip"
        assert response.header("vary") == "Accept-Encoding"
        assert gzip.decompress(response.body) == (public_dir / "style.css").read_bytes()

    async def test_deflate(self, app: App, public_dir: Path) -> None:
        async with TestClient(app) as client:
            response = await client.get("/index.html", headers={"accept-encoding": "deflate"})

        assert response.header("content-encoding") == "deflate"
        assert zlib.decompress(response.body) == (public_dir / "index.html").read_bytes()

    async def test_unsupported_encoding_only(self, app: App, public_dir: Path) -> None:
        async with TestClient(app) as client:
            response = await client.get("/style.css", headers={"accept-encoding": "zstd"})

        assert response.header("content-encoding") is None
        assert response.body == (public_dir / "style.css").read_bytes()

    async def test_content_length_matches_encoded_body(self, app: App) -> None:
        async with TestClient(app) as client:
            response = await client.get("/style.css", headers={"accept-encoding": "br"})

        assert response.header("content-length") == str(len(response.body))

    async def test_post_is_405(self, app: App) -> None:
        async with TestClient(app) as client:
            response = await client.post("/index.html", body=b"x")

        assert response.status == 405
        assert response.header("allow") == "GET, HEAD"

    async def test_cache_control(self, public_dir: Path) -> None:
        app = App(AppConfig(public_dir=public_dir, cache_control="public, max-age=60"))

        async with TestClient(app) as client:
            response = await client.get("/index.html")

        assert response.header("cache-control") == "public, max-age=60"

    async def test_no_cache_control_by_default(self, app: App) -> None:
        async with TestClient(app) as client:
            response = await client.get("/index.html")

        assert response.header("cache-control") is None

    async def test_unreadable_file_is_404(self, app: App, public_dir: Path) -> None:
        secret = public_dir / "locked.txt"
        secret.write_text("nope")
        secret.chmod(0)
        try:
            if os.access(secret, os.R_OK):
                pytest.skip("running with privileges that ignore file modes")
            async with TestClient(app) as client:
                response = await client.get("/locked.txt")
        finally:
            secret.chmod(0o644)

        assert response.status == 404
        assert response.text == "404 Not Found"
