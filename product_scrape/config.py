"""Configuration and constants for the product page scraper."""

import os
from typing import Dict, List

from product_scrape.models import SelectorPattern

__all__ = [
    "DEFAULT_TITLE",
    "DEFAULT_DESCRIPTION",
    "DEFAULT_IMAGE_ALT",
    "TITLE_SELECTORS",
    "DESCRIPTION_SELECTORS",
    "PRICE_SELECTORS",
    "IMAGE_SELECTORS",
    "SPEC_CONTAINER_SELECTORS",
    "SPEC_ROW_SELECTORS",
    "SPEC_CELL_SELECTORS",
    "SPEC_LIST_SELECTORS",
    "SPEC_SEPARATOR",
    "SPEC_KEY_MAX_LENGTH",
    "SPEC_VALUE_MAX_LENGTH",
    "MAX_IMAGES",
    "HEADERS",
    "REQUEST_TIMEOUT",
    "NAVIGATION_TIMEOUT_MS",
    "VIEWPORT",
    "BROWSER_ARGS",
    "MAX_RETRIES",
    "RETRY_DELAY",
    "RETRY_BACKOFF_BASE",
    "MAX_RETRY_BACKOFF",
    "RETRY_STATUS_CODES",
    "HTML_CONTENT_TYPES",
    "SCRAPE_RENDER",
]

# Fallback values used when no selector resolves a field
DEFAULT_TITLE = "Product Title"
DEFAULT_DESCRIPTION = "Product description not available"
DEFAULT_IMAGE_ALT = "Product image"

# =============================================================================
# Selector Priority Lists
# =============================================================================
# Most specific first. The first pattern that yields a non-empty value wins.
# Structured metadata (Open Graph, schema.org itemprop) sits at the bottom and
# only applies when none of the markup conventions above it match.

TITLE_SELECTORS: List[SelectorPattern] = [
    SelectorPattern('h1[data-testid="product-title"]'),
    SelectorPattern("h1.product-title"),
    SelectorPattern("h1#product-title"),
    SelectorPattern(".product-name h1"),
    SelectorPattern(".product-title"),
    SelectorPattern("h1"),
    SelectorPattern(".title h1"),
    SelectorPattern('[data-cy="product-title"]'),
    SelectorPattern('meta[property="og:title"]', attribute="content"),
]

DESCRIPTION_SELECTORS: List[SelectorPattern] = [
    SelectorPattern(".product-description"),
    SelectorPattern(".product-details"),
    SelectorPattern('[data-testid="product-description"]'),
    SelectorPattern(".description"),
    SelectorPattern(".product-info"),
    SelectorPattern(".product-summary"),
    SelectorPattern("p"),
    SelectorPattern('meta[property="og:description"]', attribute="content"),
    SelectorPattern('meta[name="description"]', attribute="content"),
]

PRICE_SELECTORS: List[SelectorPattern] = [
    SelectorPattern(".price"),
    SelectorPattern(".product-price"),
    SelectorPattern('[data-testid="price"]'),
    SelectorPattern(".current-price"),
    SelectorPattern(".sale-price"),
    SelectorPattern(".price-current"),
    SelectorPattern('[itemprop="price"]', attribute="content"),
    SelectorPattern('meta[property="product:price:amount"]', attribute="content"),
]

# Image patterns read "src" (falling back to lazy-load "data-src")
IMAGE_SELECTORS: List[SelectorPattern] = [
    SelectorPattern(".product-images img", attribute="src"),
    SelectorPattern(".product-gallery img", attribute="src"),
    SelectorPattern(".product-photos img", attribute="src"),
    SelectorPattern('[data-testid="product-image"]', attribute="src"),
    SelectorPattern(".main-image img", attribute="src"),
    SelectorPattern(".hero-image img", attribute="src"),
    SelectorPattern('meta[property="og:image"]', attribute="content"),
]

# =============================================================================
# Specification Extraction
# =============================================================================

SPEC_CONTAINER_SELECTORS = "table, .specifications, .product-specs, .spec-table"
SPEC_ROW_SELECTORS = "tr, .spec-row, .specification-item"
SPEC_CELL_SELECTORS = "td, th, .spec-name, .spec-value, dt, dd"
SPEC_LIST_SELECTORS = ".specs ul, .specifications ul, .product-details ul"
SPEC_SEPARATOR = ":"

# Exclusive upper bounds; longer pairs are paragraphs, not specs
SPEC_KEY_MAX_LENGTH = 50
SPEC_VALUE_MAX_LENGTH = 200

MAX_IMAGES = 10

# =============================================================================
# Page Fetching
# =============================================================================

HEADERS: Dict[str, str] = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
    "Referer": "https://google.com",
}

# Request timeouts
REQUEST_TIMEOUT = 30
NAVIGATION_TIMEOUT_MS = 60000

# Headless browser settings
VIEWPORT = {"width": 1920, "height": 1080}
BROWSER_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-accelerated-2d-canvas",
    "--no-first-run",
    "--no-zygote",
    "--disable-gpu",
]

# Retry settings
MAX_RETRIES = 3  # Retries after the first attempt
RETRY_DELAY = 2.0  # Seconds before the first retry
RETRY_BACKOFF_BASE = 2.0
MAX_RETRY_BACKOFF = 30.0
RETRY_STATUS_CODES = {429, 500, 502, 503, 504}

HTML_CONTENT_TYPES = ("text/html", "application/xhtml+xml")

# Use the headless browser instead of a plain HTTP GET
SCRAPE_RENDER = os.getenv("SCRAPE_RENDER", "False").lower() == "true"
