"""Product page scraper package."""

__version__ = "0.1.0"

# Re-export main components for convenient imports
from product_scrape.config import DEFAULT_DESCRIPTION, DEFAULT_TITLE, MAX_IMAGES
from product_scrape.html_utils import (
    extract_images,
    extract_list_specs,
    extract_product,
    extract_specifications,
    extract_table_specs,
    parse_html,
)
from product_scrape.models import ImageCandidate, ScrapedData, SelectorPattern
from product_scrape.scraper import (
    PageFetchError,
    UnsupportedContentError,
    fetch_html,
    fetch_rendered_html,
    scrape_product,
)
from product_scrape.url_validation import URLValidationError, validate_url

__all__ = [
    # Version
    "__version__",
    # Config
    "DEFAULT_TITLE",
    "DEFAULT_DESCRIPTION",
    "MAX_IMAGES",
    # Models
    "ImageCandidate",
    "ScrapedData",
    "SelectorPattern",
    # Extraction
    "parse_html",
    "extract_product",
    "extract_images",
    "extract_specifications",
    "extract_table_specs",
    "extract_list_specs",
    # Fetching
    "fetch_html",
    "fetch_rendered_html",
    "scrape_product",
    "PageFetchError",
    "UnsupportedContentError",
    "URLValidationError",
    "validate_url",
]
