"""Pytest configuration and fixtures."""

import base64
from io import BytesIO

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from deckexport.api.config import Settings, get_settings
from deckexport.api.main import app


def make_png_data_uri(color=(0, 128, 255, 255), size=(8, 8)) -> str:
    """A small solid PNG as a data URI."""
    buffer = BytesIO()
    Image.new("RGBA", size, color).save(buffer, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buffer.getvalue()).decode("ascii")


@pytest.fixture
def settings() -> Settings:
    """Settings with no asset base URL and the default 2x supersampling."""
    settings = Settings()
    settings.asset_base_url = None
    settings.supersample = 2
    settings.font_dir = None
    settings.allow_local_files = False
    settings.max_slides = 5
    return settings


@pytest.fixture
def client(settings: Settings):
    """Create a test client for the FastAPI app."""
    app.dependency_overrides[get_settings] = lambda: settings
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def png_data_uri() -> str:
    return make_png_data_uri()


@pytest.fixture
def demo_deck(png_data_uri: str) -> dict:
    """Two slides: one text element, then one image element."""
    return {
        "title": "Demo",
        "slideSize": {"width": 960, "height": 540},
        "slides": [
            {
                "id": "slide-1",
                "background": {
                    "type": "gradient",
                    "value": "linear-gradient(135deg, #a78bfa 0%, #8b5cf6 100%)",
                },
                "elements": [
                    {
                        "id": "title-1",
                        "type": "text",
                        "content": "Quarterly review",
                        "position": {"x": 200, "y": 200},
                        "size": {"width": 520, "height": 80},
                        "style": {
                            "fontSize": 48,
                            "fontWeight": "bold",
                            "color": "#ffffff",
                            "textAlign": "center",
                        },
                    }
                ],
            },
            {
                "id": "slide-2",
                "background": {"type": "color", "value": "#ffffff"},
                "elements": [
                    {
                        "id": "image-2",
                        "type": "image",
                        "content": png_data_uri,
                        "position": {"x": 500, "y": 130},
                        "size": {"width": 400, "height": 300},
                        "style": {},
                    }
                ],
            },
        ],
    }
