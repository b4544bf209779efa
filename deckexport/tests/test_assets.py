"""Tests for image source loading."""

import base64
from io import BytesIO
from urllib.parse import quote_from_bytes

import httpx
import pytest
from PIL import Image

from deckexport.renderer.assets import AssetLoader
from deckexport.renderer.errors import AssetLoadError


def png_bytes(color=(255, 0, 0, 255), size=(4, 3)) -> bytes:
    buffer = BytesIO()
    Image.new("RGBA", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


def mock_client(routes: dict):
    """httpx client answering from ``routes`` (url -> bytes), 404 otherwise.

    Returns the client and the list of requested URLs.
    """
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(str(request.url))
        body = routes.get(str(request.url))
        if body is None:
            return httpx.Response(404)
        return httpx.Response(200, content=body)

    return httpx.Client(transport=httpx.MockTransport(handler)), calls


class TestDataUris:
    """Tests for data: sources."""

    def test_base64(self):
        source = "data:image/png;base64," + base64.b64encode(png_bytes((0, 128, 255, 255), (8, 8))).decode("ascii")
        image = AssetLoader().load(source)
        assert image.mode == "RGBA"
        assert image.size == (8, 8)
        assert image.getpixel((0, 0)) == (0, 128, 255, 255)

    def test_percent_encoded(self):
        source = "data:image/png," + quote_from_bytes(png_bytes())
        image = AssetLoader().load(source)
        assert image.size == (4, 3)

    def test_malformed(self):
        with pytest.raises(AssetLoadError, match="malformed data URI"):
            AssetLoader().load("data:image/png;base64")

    def test_not_an_image(self):
        with pytest.raises(AssetLoadError, match="not a decodable bitmap"):
            AssetLoader().load("data:text/plain,hello")


class TestFiles:
    """Tests for filesystem sources."""

    def test_path(self, tmp_path):
        path = tmp_path / "red.png"
        path.write_bytes(png_bytes())
        assert AssetLoader(allow_local_files=True).load(str(path)).size == (4, 3)

    def test_file_url(self, tmp_path):
        path = tmp_path / "red.png"
        path.write_bytes(png_bytes())
        assert AssetLoader(allow_local_files=True).load(path.as_uri()).size == (4, 3)

    def test_local_path_disabled_by_default(self, tmp_path):
        """Server files are not readable unless local access is switched on."""
        path = tmp_path / "secret.png"
        path.write_bytes(png_bytes())
        with pytest.raises(AssetLoadError, match="local file access is disabled"):
            AssetLoader().load(str(path))

    def test_file_url_disabled_by_default(self, tmp_path):
        path = tmp_path / "secret.png"
        path.write_bytes(png_bytes())
        with pytest.raises(AssetLoadError, match="local file access is disabled"):
            AssetLoader().load(path.as_uri())

    def test_absolute_path_uses_base_url_when_local_disabled(self, tmp_path):
        """With a base URL an absolute path is a server-relative URL, not a file."""
        path = tmp_path / "logo.png"
        path.write_bytes(png_bytes())
        client, calls = mock_client({})
        loader = AssetLoader(base_url="https://app.example.com/", client=client)
        with pytest.raises(AssetLoadError, match="404"):
            loader.load(str(path))
        assert calls == [f"https://app.example.com{path.as_posix()}"]

    def test_decompression_bomb(self, monkeypatch):
        """Oversized bitmaps are refused as undecodable."""
        monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 10)
        source = "data:image/png;base64," + base64.b64encode(png_bytes(size=(8, 8))).decode("ascii")
        with pytest.raises(AssetLoadError, match="not a decodable bitmap"):
            AssetLoader().load(source)

    def test_relative_without_base_url(self):
        """A relative source needs a base URL to resolve against."""
        with pytest.raises(AssetLoadError, match="no base URL"):
            AssetLoader().load("images/missing-logo.png")

    def test_empty_source(self):
        with pytest.raises(AssetLoadError):
            AssetLoader().load("   ")


class TestHttp:
    """Tests for http(s) sources."""

    def test_fetch(self):
        client, calls = mock_client({"https://cdn.example.com/a.png": png_bytes()})
        with AssetLoader(client=client) as loader:
            assert loader.load("https://cdn.example.com/a.png").size == (4, 3)

    def test_cached_per_source(self):
        """Each source is fetched once per loader."""
        client, calls = mock_client({"https://cdn.example.com/a.png": png_bytes()})
        loader = AssetLoader(client=client)
        loader.load("https://cdn.example.com/a.png")
        loader.load("https://cdn.example.com/a.png")
        assert calls == ["https://cdn.example.com/a.png"]

    def test_http_error(self):
        client, calls = mock_client({})
        with pytest.raises(AssetLoadError, match="404"):
            AssetLoader(client=client).load("https://cdn.example.com/gone.png")

    def test_relative_with_base_url(self):
        client, calls = mock_client({"https://app.example.com/images/logo.png": png_bytes()})
        loader = AssetLoader(base_url="https://app.example.com/", client=client)
        assert loader.load("/images/logo.png").size == (4, 3)

    def test_borrowed_client_left_open(self):
        """A client passed in is not closed by the loader."""
        client, calls = mock_client({})
        AssetLoader(client=client).close()
        assert not client.is_closed
        client.close()
