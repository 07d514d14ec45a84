"""LLM-backed marketing copy for scraped products.

The model is asked for a JSON object; anything it returns is cleaned into a
``GeneratedContent`` with bounded list sizes. When the reply cannot be parsed
a deterministic fallback payload is used instead. Transport and API failures
are not papered over: they raise ``ContentGenerationError``.
"""

import json
import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from .config import LLM_MODEL
from .logging_utils import log_interaction
from .prompts import build_content_prompt, build_suggestions_prompt

__all__ = [
    "generate_content",
    "suggest_improvements",
    "parse_llm_json",
    "GeneratedContent",
    "ContentGenerationError",
    "FALLBACK_CONTENT",
    "FALLBACK_SUGGESTIONS",
]

logger = logging.getLogger(__name__)

MAX_FEATURES = 8
MAX_BENEFITS = 6
MAX_KEYWORDS = 12

FALLBACK_CONTENT: Dict[str, Any] = {
    "features": [
        "High-quality construction and materials",
        "User-friendly design and interface",
        "Reliable performance and durability",
        "Excellent value for money",
        "Comprehensive warranty coverage",
    ],
    "benefits": [
        "Saves time and increases efficiency",
        "Provides long-lasting value",
        "Easy to use and maintain",
        "Backed by excellent customer support",
    ],
    "keywords": ["product", "quality", "reliable", "efficient"],
    "category": "General Product",
    "targetAudience": "General consumers",
}

FALLBACK_SUGGESTIONS: Dict[str, List[str]] = {
    "titleSuggestions": ["Consider adding key benefits to the title"],
    "descriptionImprovements": ["Add more specific technical details"],
    "missingFeatures": ["Consider highlighting unique selling points"],
    "seoRecommendations": ["Include relevant keywords naturally"],
    "layoutSuggestions": ["Use bullet points for better readability"],
}

_JSON_BLOCK = re.compile(r"\{[\s\S]*\}")


class ContentGenerationError(Exception):
    """Raised when the LLM could not be reached or rejected the request."""
    pass


def _get_openai_client():
    """Get OpenAI client (lazy initialization)."""
    from openai import OpenAI
    return OpenAI()


class GeneratedContent:
    """Cleaned marketing copy for one product."""

    def __init__(
        self,
        title: str,
        description: str,
        specifications: Dict[str, str],
        features: List[str],
        benefits: List[str],
        keywords: List[str],
        category: str,
        target_audience: str,
        generated_at: datetime,
    ):
        self.title = title
        self.description = description
        self.specifications = specifications
        self.features = features
        self.benefits = benefits
        self.keywords = keywords
        self.category = category
        self.target_audience = target_audience
        self.generated_at = generated_at

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the JSON wire shape."""
        return {
            "title": self.title,
            "description": self.description,
            "specifications": self.specifications,
            "features": self.features,
            "benefits": self.benefits,
            "keywords": self.keywords,
            "category": self.category,
            "targetAudience": self.target_audience,
            "generatedAt": self.generated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GeneratedContent":
        """Create from the JSON wire shape."""
        generated_at = data.get("generatedAt")
        if isinstance(generated_at, str):
            generated_at = datetime.fromisoformat(generated_at.replace("Z", "+00:00"))
        return cls(
            title=data.get("title", ""),
            description=data.get("description", ""),
            specifications=dict(data.get("specifications") or {}),
            features=list(data.get("features") or []),
            benefits=list(data.get("benefits") or []),
            keywords=list(data.get("keywords") or []),
            category=data.get("category", "Product"),
            target_audience=data.get("targetAudience", "General consumers"),
            generated_at=generated_at or datetime.now(timezone.utc),
        )


def parse_llm_json(text: str) -> Dict[str, Any]:
    """Parse the outermost ``{...}`` block of an LLM reply.

    Replies are often wrapped in markdown fences or prose, so the first
    opening brace through the last closing brace is taken.

    Raises:
        ValueError: If there is no JSON object in the text.
    """
    if not text:
        raise ValueError("Empty AI response")
    match = _JSON_BLOCK.search(text)
    if not match:
        raise ValueError("No valid JSON found in AI response")
    parsed = json.loads(match.group(0))
    if not isinstance(parsed, dict):
        raise ValueError("AI response JSON is not an object")
    return parsed


def _call_llm(prompt: str, stage: str, client=None, model: str = LLM_MODEL,
              log_dir: Optional[Path] = None) -> str:
    """Send ``prompt`` and return the raw text of the first output message."""
    log_interaction(f"llm_call_{stage}", {"model": model, "prompt": prompt}, log_dir)

    input_payload = [{"role": "user", "content": [{"type": "input_text", "text": prompt}]}]

    try:
        client = client or _get_openai_client()
        resp = client.responses.create(model=model, input=input_payload)
    except Exception as e:
        log_interaction(f"llm_error_{stage}", {"error": str(e)}, log_dir)
        logger.exception("Error calling LLM for %s", stage)
        raise ContentGenerationError(str(e)) from e

    for item in resp.output:
        if hasattr(item, "content") and item.content:
            raw = item.content[0].text  # type: ignore[union-attr]
            log_interaction(
                f"llm_response_{stage}",
                {"model": model, "raw_response": raw},
                log_dir,
            )
            return raw

    return ""


def _clean_list(value: Any, limit: int, default: List[str]) -> List[str]:
    if not isinstance(value, list):
        return list(default)
    return [str(item) for item in value][:limit]


def _clean_content(
    payload: Dict[str, Any],
    product: Dict[str, Any],
    generated_at: datetime,
) -> GeneratedContent:
    """Merge the model payload with the product and bound list sizes."""
    generated_specs = payload.get("specifications")
    specifications = dict(product.get("specifications") or {})
    if isinstance(generated_specs, dict):
        specifications.update({str(k): str(v) for k, v in generated_specs.items()})

    return GeneratedContent(
        title=payload.get("title") or product.get("title", ""),
        description=payload.get("description") or product.get("description", ""),
        specifications=specifications,
        features=_clean_list(
            payload.get("features"), MAX_FEATURES,
            ["High-quality product with excellent features"],
        ),
        benefits=_clean_list(
            payload.get("benefits"), MAX_BENEFITS,
            ["Provides excellent value and performance"],
        ),
        keywords=_clean_list(payload.get("keywords"), MAX_KEYWORDS, ["product", "quality"]),
        category=payload.get("category") or "Product",
        target_audience=payload.get("targetAudience") or "General consumers",
        generated_at=generated_at,
    )


def generate_content(
    product: Dict[str, Any],
    options: Dict[str, Any],
    client=None,
    model: str = LLM_MODEL,
    log_dir: Optional[Path] = None,
    now: Optional[datetime] = None,
) -> GeneratedContent:
    """Generate catalog copy for a product.

    Args:
        product: Product data (title, description, price, specifications, url).
        options: Normalized generation options.
        client: OpenAI client; created lazily when omitted.
        model: Model name for the Responses API.
        log_dir: Directory for the interaction log.
        now: Timestamp recorded as ``generatedAt`` (default: current UTC time).

    Returns:
        Cleaned GeneratedContent.

    Raises:
        ContentGenerationError: If the API call itself fails.
    """
    logger.info("Generating AI content for product: %s", product.get("title"))
    prompt = build_content_prompt(product, options)
    raw = _call_llm(prompt, "content_generation", client, model, log_dir)

    try:
        payload = parse_llm_json(raw)
    except ValueError as e:
        log_interaction(
            "llm_parse_error_content_generation",
            {"error": str(e), "raw": raw},
            log_dir,
        )
        logger.warning("Failed to parse AI response, using fallback content")
        payload = {
            "title": product.get("title"),
            "description": product.get("description"),
            "specifications": product.get("specifications") or {},
            **FALLBACK_CONTENT,
        }

    content = _clean_content(payload, product, now or datetime.now(timezone.utc))
    log_interaction(
        "content_generation_result",
        {"title": content.title, "features": len(content.features),
         "benefits": len(content.benefits)},
        log_dir,
    )
    logger.info("Successfully generated AI content for: %s", content.title)
    return content


def suggest_improvements(
    product: Dict[str, Any],
    client=None,
    model: str = LLM_MODEL,
    log_dir: Optional[Path] = None,
) -> Dict[str, Any]:
    """Ask the LLM for improvement suggestions on existing content.

    Falls back to generic suggestions when the reply is not parseable.

    Raises:
        ContentGenerationError: If the API call itself fails.
    """
    prompt = build_suggestions_prompt(product)
    raw = _call_llm(prompt, "suggestions", client, model, log_dir)

    try:
        return parse_llm_json(raw)
    except ValueError as e:
        log_interaction("llm_parse_error_suggestions", {"error": str(e), "raw": raw}, log_dir)
        return {key: list(values) for key, values in FALLBACK_SUGGESTIONS.items()}
