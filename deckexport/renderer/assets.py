"""Image source resolution for the rasterizer.

An element's image source may be a ``data:`` URI, an ``http(s)`` URL, a
``file://`` URI or a plain file path. Relative URLs are resolved against a
configured base URL when one is set. Files on the local disk are read only
when ``allow_local_files`` is on; the HTTP service leaves it off so clients
cannot pull server files into a package. Every failure surfaces as an
``AssetLoadError``; callers decide whether that is fatal.
"""

import base64
import binascii
import logging
from io import BytesIO
from pathlib import Path
from typing import Dict, Optional
from urllib.parse import unquote, unquote_to_bytes, urljoin, urlparse

import httpx
from PIL import Image, UnidentifiedImageError

from deckexport.renderer.errors import AssetLoadError

logger = logging.getLogger("deckexport.assets")


class AssetLoader:
    """Fetches and decodes image sources, caching by source for one export.

    Use as a context manager so the HTTP client is closed.
    """

    def __init__(
        self,
        timeout: Optional[float] = 10.0,
        base_url: Optional[str] = None,
        client: Optional[httpx.Client] = None,
        allow_local_files: bool = False,
    ):
        self.timeout = timeout
        self.base_url = base_url
        self.allow_local_files = allow_local_files
        self._client = client
        self._owns_client = client is None
        self._cache: Dict[str, Image.Image] = {}

    def __enter__(self) -> "AssetLoader":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        """Close the HTTP client if this loader created it."""
        if self._client is not None and self._owns_client:
            self._client.close()
        self._client = None
        self._cache.clear()

    @property
    def client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(timeout=self.timeout, follow_redirects=True)
            self._owns_client = True
        return self._client

    def load(self, source: str) -> Image.Image:
        """Return the decoded image for ``source`` as RGBA.

        Raises:
            AssetLoadError: if the source cannot be read or decoded.
        """
        source = source.strip()
        if not source:
            raise AssetLoadError(source, "empty image source")
        if source not in self._cache:
            data = self._read(source)
            self._cache[source] = self._decode(source, data)
        return self._cache[source]

    def _read(self, source: str) -> bytes:
        if source.startswith("data:"):
            return self._read_data_uri(source)

        scheme = urlparse(source).scheme.lower()
        if scheme in ("http", "https"):
            return self._fetch(source)
        if scheme == "file":
            if not self.allow_local_files:
                raise AssetLoadError(source, "local file access is disabled")
            return self._read_file(Path(unquote(urlparse(source).path)), source)

        path = Path(source)
        if self.allow_local_files and _is_file(path):
            return self._read_file(path, source)
        if self.base_url:
            return self._fetch(urljoin(self.base_url, source))
        if path.is_absolute():
            reason = "no such file" if self.allow_local_files else "local file access is disabled"
            raise AssetLoadError(source, reason)
        raise AssetLoadError(source, "relative source with no base URL configured")

    def _read_data_uri(self, source: str) -> bytes:
        header, sep, payload = source[5:].partition(",")
        if not sep:
            raise AssetLoadError(source, "malformed data URI")
        if header.endswith(";base64"):
            try:
                return base64.b64decode(payload, validate=False)
            except (binascii.Error, ValueError) as exc:
                raise AssetLoadError(source, f"invalid base64 payload: {exc}") from exc
        return unquote_to_bytes(payload)

    def _read_file(self, path: Path, source: str) -> bytes:
        try:
            return path.read_bytes()
        except OSError as exc:
            raise AssetLoadError(source, str(exc)) from exc

    def _fetch(self, url: str) -> bytes:
        logger.debug(f"Fetching image {url}")
        try:
            response = self.client.get(url)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise AssetLoadError(url, str(exc)) from exc
        return response.content

    def _decode(self, source: str, data: bytes) -> Image.Image:
        try:
            with Image.open(BytesIO(data)) as image:
                image.load()
                return image.convert("RGBA")
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as exc:
            raise AssetLoadError(source, f"not a decodable bitmap: {exc}") from exc


def _is_file(path: Path) -> bool:
    try:
        return path.is_file()
    except (OSError, ValueError):
        return False
