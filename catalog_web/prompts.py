"""Prompt generation for catalog copywriting.

Two prompts are built here:
1. Content generation: marketing copy for a scraped product
2. Improvement suggestions for existing catalog content
"""

import json
from typing import Any, Dict

__all__ = [
    "build_content_prompt",
    "build_suggestions_prompt",
    "LENGTH_WORD_RANGES",
]

# Target description length per "length" option
LENGTH_WORD_RANGES = {
    "short": "100-200",
    "medium": "200-400",
    "long": "400-600",
}


def _format_product_for_prompt(product: Dict[str, Any]) -> str:
    """Format the product fields as a bullet list for the prompt."""
    specs = product.get("specifications") or {}
    lines = [
        f"- Title: {product.get('title', '')}",
        f"- Description: {product.get('description', '')}",
        f"- Price: {product.get('price') or 'Not specified'}",
        f"- Specifications: {json.dumps(specs, indent=2, ensure_ascii=False)}",
        f"- Source URL: {product.get('url') or product.get('sourceUrl') or ''}",
    ]
    return "\n".join(lines)


def build_content_prompt(product: Dict[str, Any], options: Dict[str, Any]) -> str:
    """Build the prompt asking the LLM for catalog copy.

    Args:
        product: Product data with title, description, price, specifications, url.
        options: Normalized options (tone, length, includeFeatures, includeBenefits).

    Returns:
        Formatted prompt string.
    """
    length = options.get("length", "medium")
    word_range = LENGTH_WORD_RANGES.get(length, LENGTH_WORD_RANGES["medium"])
    include_features = str(bool(options.get("includeFeatures", True))).lower()
    include_benefits = str(bool(options.get("includeBenefits", True))).lower()

    return f"""You are a professional product catalog writer. Generate compelling, accurate, and detailed content for the following product:

PRODUCT INFORMATION:
{_format_product_for_prompt(product)}

REQUIREMENTS:
- Tone: {options.get("tone", "professional")}
- Length: {length}
- Include features: {include_features}
- Include benefits: {include_benefits}

RESPONSE FORMAT (return pure JSON only, no prose):
{{
  "title": "Enhanced, compelling product title (max 80 characters)",
  "description": "Professional product description ({word_range} words)",
  "specifications": {{
    "Specification name": "Improved, consistently formatted value"
  }},
  "features": ["5-8 key product features as bullet points"],
  "benefits": ["4-6 customer benefits explaining why they should choose this product"],
  "keywords": ["8-12 SEO keywords relevant to this product"],
  "category": "Product category classification",
  "targetAudience": "Primary target audience description"
}}

GUIDELINES:
- Make the content engaging and persuasive
- Focus on unique selling points
- Use industry-appropriate terminology
- Ensure all content is factual and based on the provided information
- Optimize for both readability and SEO
- Maintain a consistent tone throughout
"""


def build_suggestions_prompt(product: Dict[str, Any]) -> str:
    """Build the prompt asking the LLM to critique existing catalog content."""
    current = json.dumps(product, indent=2, ensure_ascii=False, default=str)

    return f"""Analyze this product catalog content and suggest improvements.

CURRENT CONTENT:
{current}

RESPONSE FORMAT (return pure JSON only, no prose):
{{
  "titleSuggestions": ["Alternative title 1", "Alternative title 2", "Alternative title 3"],
  "descriptionImprovements": ["Improvement suggestion 1", "Improvement suggestion 2"],
  "missingFeatures": ["Feature that should be highlighted 1", "Feature 2"],
  "seoRecommendations": ["SEO tip 1", "SEO tip 2"],
  "layoutSuggestions": ["Layout improvement 1", "Layout improvement 2"]
}}
"""
