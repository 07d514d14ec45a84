"""Tests for LLM content generation with a mocked OpenAI client."""

import json
from datetime import datetime, timezone

import pytest

from catalog_web.content_generation import (
    FALLBACK_CONTENT,
    FALLBACK_SUGGESTIONS,
    ContentGenerationError,
    GeneratedContent,
    generate_content,
    parse_llm_json,
    suggest_improvements,
)
from catalog_web.prompts import build_content_prompt, build_suggestions_prompt

OPTIONS = {"tone": "casual", "length": "long", "includeFeatures": True, "includeBenefits": False}
NOW = datetime(2026, 10, 19, 8, 30, tzinfo=timezone.utc)


@pytest.fixture
def product():
    return {
        "title": "Trail Running Shoe",
        "description": "Lightweight shoe with a grippy outsole.",
        "price": None,
        "specifications": {"Drop": "6 mm", "Weight": "280 g"},
        "url": "https://shop.example.com/shoes/trail",
    }


class TestParseLlmJson:
    """Tests for extracting JSON from model replies."""

    def test_plain_json(self):
        assert parse_llm_json('{"title": "X"}') == {"title": "X"}

    def test_fenced_json_with_prose(self):
        text = 'Sure!\n```json\n{"a": {"b": 1}}\n```\nAnything else?'
        assert parse_llm_json(text) == {"a": {"b": 1}}

    @pytest.mark.parametrize("text", ["", "no json here", "{not: valid}", "[1, 2]"])
    def test_invalid(self, text):
        with pytest.raises(ValueError):
            parse_llm_json(text)


class TestPrompts:
    """Tests for prompt construction."""

    def test_content_prompt_includes_product_and_options(self, product):
        prompt = build_content_prompt(product, OPTIONS)
        assert "Trail Running Shoe" in prompt
        assert "Price: Not specified" in prompt
        assert '"Drop": "6 mm"' in prompt
        assert "Tone: casual" in prompt
        assert "400-600 words" in prompt
        assert "Include benefits: false" in prompt
        assert "https://shop.example.com/shoes/trail" in prompt

    @pytest.mark.parametrize("length,words", [("short", "100-200"), ("medium", "200-400")])
    def test_length_ranges(self, product, length, words):
        assert f"{words} words" in build_content_prompt(product, {**OPTIONS, "length": length})

    def test_suggestions_prompt(self, product):
        prompt = build_suggestions_prompt(product)
        assert "titleSuggestions" in prompt
        assert "Lightweight shoe" in prompt


class TestGenerateContent:
    """Tests for generate_content."""

    def test_cleans_and_caps_lists(
        self, product, generated_payload, llm_reply, mock_openai_client, make_llm_response, tmp_path
    ):
        mock_openai_client.responses.create.return_value = make_llm_response(llm_reply)

        content = generate_content(
            product, OPTIONS, client=mock_openai_client, model="test-model",
            log_dir=tmp_path, now=NOW,
        )

        assert content.title == generated_payload["title"]
        assert len(content.features) == 8
        assert len(content.benefits) == 6
        assert len(content.keywords) == 12
        assert content.category == "Footwear"
        assert content.target_audience == "Trail runners"
        # Generated specs overlay the scraped ones
        assert content.specifications == {"Drop": "6 mm", "Weight": "280 g (US 9)", "Outsole": "Vibram"}
        assert content.to_dict()["generatedAt"] == NOW.isoformat()

        kwargs = mock_openai_client.responses.create.call_args.kwargs
        assert kwargs["model"] == "test-model"
        assert kwargs["input"][0]["content"][0]["type"] == "input_text"

    def test_missing_fields_use_defaults(self, product, mock_openai_client, make_llm_response, tmp_path):
        mock_openai_client.responses.create.return_value = make_llm_response(
            json.dumps({"features": "not a list", "title": ""})
        )

        content = generate_content(product, OPTIONS, client=mock_openai_client, log_dir=tmp_path)

        assert content.title == product["title"]
        assert content.description == product["description"]
        assert content.features == ["High-quality product with excellent features"]
        assert content.benefits == ["Provides excellent value and performance"]
        assert content.keywords == ["product", "quality"]
        assert content.category == "Product"
        assert content.target_audience == "General consumers"

    def test_unparseable_reply_uses_fallback(self, product, mock_openai_client, make_llm_response, tmp_path):
        mock_openai_client.responses.create.return_value = make_llm_response("I cannot help.")

        content = generate_content(product, OPTIONS, client=mock_openai_client, log_dir=tmp_path)

        assert content.title == product["title"]
        assert content.features == FALLBACK_CONTENT["features"]
        assert content.benefits == FALLBACK_CONTENT["benefits"]
        assert content.category == "General Product"
        assert content.specifications == product["specifications"]

        log_lines = [json.loads(line) for f in tmp_path.glob("*.jsonl") for line in f.read_text().splitlines()]
        assert "llm_parse_error_content_generation" in {e["event_type"] for e in log_lines}

    def test_api_failure_raises(self, product, mock_openai_client, tmp_path):
        mock_openai_client.responses.create.side_effect = RuntimeError("invalid api key")

        with pytest.raises(ContentGenerationError, match="invalid api key"):
            generate_content(product, OPTIONS, client=mock_openai_client, log_dir=tmp_path)

    def test_round_trip_dict(self, product, llm_reply, mock_openai_client, make_llm_response, tmp_path):
        mock_openai_client.responses.create.return_value = make_llm_response(llm_reply)
        content = generate_content(product, OPTIONS, client=mock_openai_client, log_dir=tmp_path, now=NOW)

        restored = GeneratedContent.from_dict(content.to_dict())
        assert restored.to_dict() == content.to_dict()


class TestSuggestImprovements:
    """Tests for suggest_improvements."""

    def test_parsed_reply(self, product, mock_openai_client, make_llm_response, tmp_path):
        reply = {"titleSuggestions": ["A", "B"], "seoRecommendations": ["Use 'trail'"]}
        mock_openai_client.responses.create.return_value = make_llm_response(json.dumps(reply))

        assert suggest_improvements(product, client=mock_openai_client, log_dir=tmp_path) == reply

    def test_fallback(self, product, mock_openai_client, make_llm_response, tmp_path):
        mock_openai_client.responses.create.return_value = make_llm_response("{broken")

        result = suggest_improvements(product, client=mock_openai_client, log_dir=tmp_path)
        assert result == FALLBACK_SUGGESTIONS

    def test_api_failure_raises(self, product, mock_openai_client, tmp_path):
        mock_openai_client.responses.create.side_effect = ConnectionError("offline")
        with pytest.raises(ContentGenerationError):
            suggest_improvements(product, client=mock_openai_client, log_dir=tmp_path)
