"""HTML parsing and extraction utilities.

Turns an arbitrary product page into a ScrapedData record without knowing
the site's markup in advance. Every field is resolved through a ranked list
of selector patterns; a field nothing matches falls back to a default value
instead of raising. Nothing in this module touches the network.
"""

import re
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from bs4 import BeautifulSoup, Tag

from product_scrape.config import (
    DEFAULT_DESCRIPTION,
    DEFAULT_IMAGE_ALT,
    DEFAULT_TITLE,
    DESCRIPTION_SELECTORS,
    IMAGE_SELECTORS,
    MAX_IMAGES,
    PRICE_SELECTORS,
    SPEC_CELL_SELECTORS,
    SPEC_CONTAINER_SELECTORS,
    SPEC_KEY_MAX_LENGTH,
    SPEC_LIST_SELECTORS,
    SPEC_ROW_SELECTORS,
    SPEC_SEPARATOR,
    SPEC_VALUE_MAX_LENGTH,
    TITLE_SELECTORS,
)
from product_scrape.models import ImageCandidate, ScrapedData, SelectorPattern
from product_scrape.url_validation import is_inline_image, resolve_image_url

__all__ = [
    "parse_html",
    "element_text",
    "extract_text_field",
    "extract_optional_text_field",
    "extract_images",
    "is_acceptable_spec",
    "extract_table_specs",
    "extract_list_specs",
    "merge_specs",
    "extract_specifications",
    "extract_product",
]

WHITESPACE_RE = re.compile(r"\s+")


def parse_html(html: str) -> BeautifulSoup:
    """Parse raw HTML into a queryable document."""
    return BeautifulSoup(html, "html.parser")


def _normalize(text: str) -> str:
    return WHITESPACE_RE.sub(" ", text).strip()


def element_text(element: Tag) -> str:
    """Visible text of an element with whitespace runs collapsed."""
    return _normalize(element.get_text())


def _pattern_value(element: Tag, pattern: SelectorPattern) -> str:
    """Resolve the value a pattern reads from a matched element."""
    if pattern.attribute is None:
        return element_text(element)
    value = element.get(pattern.attribute)
    if isinstance(value, list):  # multi-valued attributes like class
        value = " ".join(value)
    return _normalize(value or "")


# =============================================================================
# Text Fields
# =============================================================================

def extract_optional_text_field(
    soup: BeautifulSoup,
    patterns: Sequence[SelectorPattern],
) -> Optional[str]:
    """Return the value of the first pattern that resolves to non-empty text.

    Only the first element matched by each pattern is considered. Returns
    None when no pattern produces a value.
    """
    for pattern in patterns:
        element = soup.select_one(pattern.selector)
        if element is None:
            continue
        value = _pattern_value(element, pattern)
        if value:
            return value
    return None


def extract_text_field(
    soup: BeautifulSoup,
    patterns: Sequence[SelectorPattern],
    default: str,
) -> str:
    """Like extract_optional_text_field, but falls back to ``default``."""
    value = extract_optional_text_field(soup, patterns)
    return value if value is not None else default


# =============================================================================
# Images
# =============================================================================

def _image_source(element: Tag, pattern: SelectorPattern) -> str:
    attribute = pattern.attribute or "src"
    src = element.get(attribute)
    if not src and attribute == "src":
        # Lazy-loaded galleries keep the real URL in data-src
        src = element.get("data-src")
    return src.strip() if isinstance(src, str) else ""


def extract_images(
    soup: BeautifulSoup,
    patterns: Sequence[SelectorPattern] = IMAGE_SELECTORS,
    base_url: str = "",
    limit: int = MAX_IMAGES,
    stop_on_filtered_empty: bool = False,
) -> List[ImageCandidate]:
    """Collect the product gallery from the first pattern that yields images.

    Unlike text fields, every element a pattern matches is collected. Inline
    data URIs are dropped, relative URLs are resolved against ``base_url``
    and the result is capped at ``limit``. Results from different patterns
    are never merged.

    Args:
        soup: Parsed page
        patterns: Image selector patterns, most specific first
        base_url: Page URL used to resolve relative sources
        limit: Maximum number of images to return
        stop_on_filtered_empty: If True, a pattern that matched elements but
            filtered down to zero usable images ends the search instead of
            falling through to the next pattern.

    Returns:
        List of ImageCandidate (possibly empty)
    """
    for pattern in patterns:
        elements = soup.select(pattern.selector)
        if not elements:
            continue

        images: List[ImageCandidate] = []
        for element in elements:
            src = _image_source(element, pattern)
            if not src or is_inline_image(src):
                continue
            alt = element.get("alt")
            alt = alt.strip() if isinstance(alt, str) else ""
            images.append(
                ImageCandidate(url=resolve_image_url(src, base_url), alt=alt or DEFAULT_IMAGE_ALT)
            )

        if images:
            return images[:limit]
        if stop_on_filtered_empty:
            return []
    return []


# =============================================================================
# Specifications
# =============================================================================

def is_acceptable_spec(key: str, value: str) -> bool:
    """Check a key/value pair against the specification length bounds.

    Pairs outside the bounds are paragraph text caught by a loose selector,
    so they are rejected outright rather than truncated.

    Callers pass the trimmed but uncollapsed text, so internal whitespace
    runs count toward the bounds.
    """
    return (
        bool(key)
        and bool(value)
        and len(key) < SPEC_KEY_MAX_LENGTH
        and len(value) < SPEC_VALUE_MAX_LENGTH
    )


def extract_table_specs(
    soup: BeautifulSoup,
    container_selectors: str = SPEC_CONTAINER_SELECTORS,
    row_selectors: str = SPEC_ROW_SELECTORS,
    cell_selectors: str = SPEC_CELL_SELECTORS,
) -> Dict[str, str]:
    """Tabular pass: first two cells of each row become (key, value)."""
    specs: Dict[str, str] = {}
    for container in soup.select(container_selectors):
        for row in container.select(row_selectors):
            cells = row.select(cell_selectors)
            if len(cells) < 2:
                continue
            key = cells[0].get_text().strip()
            value = cells[1].get_text().strip()
            if is_acceptable_spec(key, value):
                specs[_normalize(key)] = _normalize(value)
    return specs


def extract_list_specs(
    soup: BeautifulSoup,
    list_selectors: str = SPEC_LIST_SELECTORS,
    separator: str = SPEC_SEPARATOR,
) -> Dict[str, str]:
    """Delimited-list pass: ``"Key: Value"`` list items.

    Splits on the first separator only, so ``"Ratio: 4:3"`` yields
    ``{"Ratio": "4:3"}``.
    """
    specs: Dict[str, str] = {}
    for spec_list in soup.select(list_selectors):
        for item in spec_list.select("li"):
            text = item.get_text()
            if separator not in text:
                continue
            key, value = text.split(separator, 1)
            key, value = key.strip(), value.strip()
            if is_acceptable_spec(key, value):
                specs[_normalize(key)] = _normalize(value)
    return specs


def merge_specs(*partials: Dict[str, str]) -> Dict[str, str]:
    """Merge partial spec maps in order; later maps win on duplicate keys."""
    merged: Dict[str, str] = {}
    for partial in partials:
        merged.update(partial)
    return merged


def extract_specifications(soup: BeautifulSoup) -> Dict[str, str]:
    """Run both spec passes; list items override table rows."""
    return merge_specs(extract_table_specs(soup), extract_list_specs(soup))


# =============================================================================
# Whole Page
# =============================================================================

def extract_product(
    soup: BeautifulSoup,
    source_url: str,
    scraped_at: datetime,
    default_title: str = DEFAULT_TITLE,
    default_description: str = DEFAULT_DESCRIPTION,
    stop_on_filtered_empty: bool = False,
) -> ScrapedData:
    """Extract a complete ScrapedData record from a parsed product page.

    Pure function of its arguments: the same document, URL and timestamp
    always produce an equal record.
    """
    return ScrapedData(
        title=extract_text_field(soup, TITLE_SELECTORS, default_title),
        description=extract_text_field(soup, DESCRIPTION_SELECTORS, default_description),
        price=extract_optional_text_field(soup, PRICE_SELECTORS),
        specifications=extract_specifications(soup),
        images=tuple(
            extract_images(
                soup,
                IMAGE_SELECTORS,
                base_url=source_url,
                stop_on_filtered_empty=stop_on_filtered_empty,
            )
        ),
        source_url=source_url,
        scraped_at=scraped_at,
    )
