"""Shared fixtures: a populated public directory and apps serving it."""

from pathlib import Path

import pytest

from tern.app import App
from tern.config import AppConfig

INDEX_HTML = "<!doctype html><title>tern</title><h1>home</h1>\n"
STYLE_CSS = "body { margin: 0; padding: 0; color: #222; }\n" * 40


@pytest.fixture
def public_dir(tmp_path: Path) -> Path:
    """A public root with a few files, plus a secret one level above it."""
    root = tmp_path / "public"
    root.mkdir()
    (root / "index.html").write_text(INDEX_HTML)
    (root / "style.css").write_text(STYLE_CSS)
    (root / "logo.png").write_bytes(b"\x89PNG\r\n\x1a\n" + bytes(range(64)))
    (root / "blob.unknownext").write_bytes(b"\x00\x01\x02")
    docs = root / "docs"
    docs.mkdir()
    (docs / "index.html").write_text("<h1>docs</h1>")
    (tmp_path / "secret.txt").write_text("top secret")
    return root


@pytest.fixture
def app(public_dir: Path) -> App:
    """An app serving *public_dir* with the health and echo routes."""
    app = App(AppConfig(public_dir=public_dir))

    @app.api.get("/api/health")
    async def health(request, response, url):
        await app.api.write_json(response, {"status": "ok"})

    @app.api.post("/api/echo")
    async def echo(request, response, url):
        data = await app.api.parse_body(request)
        await app.api.write_json(response, data)

    return app
