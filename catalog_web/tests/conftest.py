"""Shared test fixtures and utilities for the catalog web test suite."""

import json
from io import BytesIO
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from PIL import Image

from catalog_web.app import create_app
from catalog_web.config import AppSettings


def _llm_response(text):
    message = SimpleNamespace(content=[SimpleNamespace(text=text)])
    return SimpleNamespace(output=[message])


def _image_bytes(size=(400, 300), fmt="PNG", color=(200, 30, 30), mode="RGB"):
    buffer = BytesIO()
    Image.new(mode, size, color).save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def make_llm_response():
    """Build an object shaped like an OpenAI Responses API result."""
    return _llm_response


@pytest.fixture
def make_image_bytes():
    """Encode a solid-color image."""
    return _image_bytes


@pytest.fixture
def settings(tmp_path):
    """Settings pointing uploads and logs at temporary directories."""
    return AppSettings(
        upload_dir=tmp_path / "uploads",
        log_dir=tmp_path / "logs",
        llm_model="test-model",
        scrape_render=False,
    )


@pytest.fixture
def app(settings):
    app = create_app(settings)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    """Create Flask test client."""
    with app.test_client() as test_client:
        yield test_client


@pytest.fixture
def mock_openai_client():
    """Create a mock OpenAI client for testing without API calls."""
    return MagicMock()


@pytest.fixture
def product_data():
    """Scraped product as sent by the UI."""
    return {
        "title": "Trail Running Shoe",
        "description": "Lightweight shoe with a grippy outsole.",
        "price": "€89.00",
        "specifications": {"Drop": "6 mm", "Weight": "280 g"},
        "sourceUrl": "https://shop.example.com/shoes/trail",
        "scrapedAt": "2026-10-19T08:00:00+00:00",
        "images": [{"url": "https://shop.example.com/shoe.jpg", "alt": "Shoe"}],
    }


@pytest.fixture
def generated_payload():
    """A well-formed LLM content reply."""
    return {
        "title": "Trail Running Shoe: Grip Meets Speed",
        "description": "Built for technical trails.",
        "specifications": {"Weight": "280 g (US 9)", "Outsole": "Vibram"},
        "features": [f"Feature {i}" for i in range(10)],
        "benefits": [f"Benefit {i}" for i in range(8)],
        "keywords": [f"kw{i}" for i in range(15)],
        "category": "Footwear",
        "targetAudience": "Trail runners",
    }


@pytest.fixture
def llm_reply(generated_payload):
    """LLM reply text wrapped in a markdown fence."""
    return "Here you go:\n```json\n" + json.dumps(generated_payload) + "\n```"


@pytest.fixture
def catalog_data():
    """A catalogData wire dict without content blocks."""
    return {
        "product": {"title": "Trail Running Shoe", "price": "€89.00", "url": "https://shop.example.com/p"},
        "generatedContent": {
            "title": "Trail Running Shoe",
            "description": "Built for technical trails. " * 20,
            "specifications": {"Drop": "6 mm", "Weight": "280 g"},
            "features": ["Grippy outsole", "Rock plate"],
            "benefits": ["Confidence on descents"],
        },
        "layout": {"theme": "modern", "colorScheme": "green", "typography": "sans"},
        "images": [],
    }
