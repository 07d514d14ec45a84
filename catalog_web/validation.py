"""Request body validation for the catalog API.

Each ``validate_*`` function takes the decoded JSON body and returns a
normalized copy with defaults filled in, or raises
``RequestValidationError`` listing every problem found.
"""

import re
from typing import Any, Dict, List, Optional

from product_scrape.url_validation import URLValidationError, validate_url

__all__ = [
    "RequestValidationError",
    "TONES",
    "LENGTHS",
    "ORIENTATIONS",
    "EXPORT_FORMATS",
    "EXPORT_QUALITIES",
    "IMAGE_FORMATS",
    "IMAGE_ID_PATTERN",
    "validate_scrape_request",
    "validate_content_request",
    "validate_stock_search_request",
    "validate_optimize_request",
    "validate_export_request",
    "validate_build_request",
    "validate_edit_request",
    "validate_image_id",
]

TONES = ("professional", "casual", "technical")
LENGTHS = ("short", "medium", "long")
ORIENTATIONS = ("landscape", "portrait", "squarish")
EXPORT_FORMATS = ("pdf", "docx")
EXPORT_QUALITIES = ("standard", "high", "print")
IMAGE_FORMATS = ("webp", "jpeg", "png")

EXPORT_OPTION_KEYS = ("includeImages", "includeSpecs", "includeFeatures", "includeBenefits")
CONTENT_OPTION_FLAGS = ("includeFeatures", "includeBenefits")

# Stored image ids: "<millis>-<random>" with an optional derived suffix
IMAGE_ID_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_-]{0,127}$")

MAX_DIMENSION = 4000


class RequestValidationError(ValueError):
    """Raised when a request body does not match the expected shape."""

    def __init__(self, details: List[str]):
        self.details = list(details)
        super().__init__("; ".join(self.details) or "Validation failed")


def _require_object(body: Any) -> Dict[str, Any]:
    if not isinstance(body, dict):
        raise RequestValidationError(["Request body must be a JSON object"])
    return body


def _check_url(value: Any, field: str, errors: List[str]) -> Optional[str]:
    if not isinstance(value, str) or not value.strip():
        errors.append(f'"{field}" is required')
        return None
    try:
        return validate_url(value)
    except URLValidationError as e:
        errors.append(f'"{field}" must be a valid uri ({e})')
        return None


def _check_choice(
    data: Dict[str, Any], key: str, choices: tuple, default: str, errors: List[str], prefix: str = ""
) -> str:
    value = data.get(key, default)
    if value not in choices:
        errors.append(f'"{prefix}{key}" must be one of [{", ".join(choices)}]')
        return default
    return value


def _check_flags(
    data: Dict[str, Any], keys: tuple, errors: List[str], prefix: str
) -> Dict[str, bool]:
    flags = {}
    for key in keys:
        value = data.get(key, True)
        if not isinstance(value, bool):
            errors.append(f'"{prefix}{key}" must be a boolean')
            value = True
        flags[key] = value
    return flags


def _check_int(
    data: Dict[str, Any], key: str, errors: List[str], minimum: int, maximum: int,
    default: Optional[int] = None,
) -> Optional[int]:
    value = data.get(key, default)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        errors.append(f'"{key}" must be an integer')
        return default
    if not minimum <= value <= maximum:
        errors.append(f'"{key}" must be between {minimum} and {maximum}')
        return default
    return value


def validate_scrape_request(body: Any) -> Dict[str, Any]:
    """Validate ``{url}``."""
    data = _require_object(body)
    errors: List[str] = []
    url = _check_url(data.get("url"), "url", errors)
    if errors:
        raise RequestValidationError(errors)
    return {"url": url}


def _validate_product_data(product: Any, errors: List[str]) -> Dict[str, Any]:
    if not isinstance(product, dict):
        errors.append('"productData" is required')
        return {}

    result: Dict[str, Any] = {}
    for key in ("title", "description"):
        value = product.get(key)
        if not isinstance(value, str) or not value.strip():
            errors.append(f'"productData.{key}" is required')
        result[key] = value

    specs = product.get("specifications", {})
    if specs is None:
        specs = {}
    if not isinstance(specs, dict):
        errors.append('"productData.specifications" must be an object')
        specs = {}
    result["specifications"] = specs

    price = product.get("price")
    if price is not None and not isinstance(price, str):
        errors.append('"productData.price" must be a string or null')
    result["price"] = price

    # Scraped data carries "sourceUrl"; older clients send "url"
    url_field = "sourceUrl" if "sourceUrl" in product else "url"
    result["url"] = _check_url(product.get(url_field), f"productData.{url_field}", errors)
    return result


def validate_content_request(body: Any) -> Dict[str, Any]:
    """Validate ``{productData, options}`` for content generation and suggestions."""
    data = _require_object(body)
    errors: List[str] = []

    product = _validate_product_data(data.get("productData"), errors)

    options = data.get("options") or {}
    if not isinstance(options, dict):
        errors.append('"options" must be an object')
        options = {}

    normalized_options = {
        "tone": _check_choice(options, "tone", TONES, "professional", errors, "options."),
        "length": _check_choice(options, "length", LENGTHS, "medium", errors, "options."),
        **_check_flags(options, CONTENT_OPTION_FLAGS, errors, "options."),
    }

    if errors:
        raise RequestValidationError(errors)
    return {"productData": product, "options": normalized_options}


def validate_stock_search_request(body: Any) -> Dict[str, Any]:
    """Validate ``{query, count, orientation}`` for stock photo search."""
    data = _require_object(body)
    errors: List[str] = []

    query = data.get("query")
    if not isinstance(query, str) or not query:
        errors.append('"query" is required')
    elif not 2 <= len(query) <= 100:
        errors.append('"query" length must be between 2 and 100 characters')

    count = _check_int(data, "count", errors, 1, 15, default=6)
    orientation = _check_choice(data, "orientation", ORIENTATIONS, "landscape", errors)

    if errors:
        raise RequestValidationError(errors)
    return {"query": query, "count": count, "orientation": orientation}


def validate_image_id(image_id: str) -> str:
    """Reject ids that could escape the upload directory."""
    if not isinstance(image_id, str) or not IMAGE_ID_PATTERN.match(image_id):
        raise RequestValidationError([f'Invalid image id "{image_id}"'])
    return image_id


def validate_optimize_request(body: Any) -> Dict[str, Any]:
    """Validate ``{width, height, quality, format}`` for image optimization."""
    data = _require_object(body if body is not None else {})
    errors: List[str] = []

    width = _check_int(data, "width", errors, 1, MAX_DIMENSION)
    height = _check_int(data, "height", errors, 1, MAX_DIMENSION)
    quality = _check_int(data, "quality", errors, 1, 100, default=85)
    fmt = _check_choice(data, "format", IMAGE_FORMATS, "webp", errors)

    if errors:
        raise RequestValidationError(errors)
    return {"width": width, "height": height, "quality": quality, "format": fmt}


def _validate_catalog_structure(catalog: Dict[str, Any], errors: List[str]) -> None:
    """Check the container shapes the catalog model reads; absent or null keys get defaults."""
    for key in ("product", "generatedContent", "layout"):
        if catalog.get(key) is not None and not isinstance(catalog[key], dict):
            errors.append(f'"catalogData.{key}" must be an object')
    for key in ("images", "contentBlocks"):
        items = catalog.get(key)
        if items is not None and (not isinstance(items, list) or not all(isinstance(i, dict) for i in items)):
            errors.append(f'"catalogData.{key}" must be an array of objects')


def _validate_catalog_data(catalog: Any, errors: List[str]) -> None:
    if not isinstance(catalog, dict):
        errors.append('"catalogData" is required')
        return

    if not isinstance(catalog.get("product"), dict):
        errors.append('"catalogData.product" is required')

    content = catalog.get("generatedContent")
    if not isinstance(content, dict):
        errors.append('"catalogData.generatedContent" is required')
    else:
        for key in ("title", "description"):
            if not isinstance(content.get(key), str):
                errors.append(f'"catalogData.generatedContent.{key}" is required')
        if not isinstance(content.get("specifications"), dict):
            errors.append('"catalogData.generatedContent.specifications" is required')
        for key in ("features", "benefits"):
            items = content.get(key)
            if not isinstance(items, list) or not all(isinstance(i, str) for i in items):
                errors.append(f'"catalogData.generatedContent.{key}" must be an array of strings')

    layout = catalog.get("layout")
    if not isinstance(layout, dict):
        errors.append('"catalogData.layout" is required')
    else:
        for key in ("theme", "colorScheme", "typography"):
            if not isinstance(layout.get(key), str):
                errors.append(f'"catalogData.layout.{key}" is required')

    images = catalog.get("images")
    if not isinstance(images, list) or not all(isinstance(i, dict) for i in images):
        errors.append('"catalogData.images" must be an array of objects')

    blocks = catalog.get("contentBlocks")
    if blocks is not None and (
        not isinstance(blocks, list) or not all(isinstance(b, dict) for b in blocks)
    ):
        errors.append('"catalogData.contentBlocks" must be an array of objects')


def validate_export_request(body: Any, expected_format: Optional[str] = None) -> Dict[str, Any]:
    """Validate an export request and fill in quality/options defaults.

    Args:
        body: Decoded JSON body.
        expected_format: Format implied by the route; a body ``format`` that
            disagrees is rejected.
    """
    data = _require_object(body)
    errors: List[str] = []

    _validate_catalog_data(data.get("catalogData"), errors)

    fmt = data.get("format", expected_format)
    if fmt not in EXPORT_FORMATS:
        errors.append(f'"format" must be one of [{", ".join(EXPORT_FORMATS)}]')
    elif expected_format and fmt != expected_format:
        errors.append(f'"format" must be "{expected_format}" for this endpoint')

    quality = _check_choice(data, "quality", EXPORT_QUALITIES, "high", errors)

    options = data.get("options") or {}
    if not isinstance(options, dict):
        errors.append('"options" must be an object')
        options = {}
    normalized_options = _check_flags(options, EXPORT_OPTION_KEYS, errors, "options.")

    if errors:
        raise RequestValidationError(errors)
    return {
        "catalogData": data["catalogData"],
        "format": fmt,
        "quality": quality,
        "options": normalized_options,
    }


def validate_build_request(body: Any) -> Dict[str, Any]:
    """Validate ``{scrapedData, generatedContent, images}``."""
    data = _require_object(body)
    errors: List[str] = []

    scraped = data.get("scrapedData")
    if not isinstance(scraped, dict):
        errors.append('"scrapedData" is required')
    generated = data.get("generatedContent")
    if not isinstance(generated, dict):
        errors.append('"generatedContent" is required')
    images = data.get("images", [])
    if not isinstance(images, list) or not all(isinstance(i, dict) for i in images):
        errors.append('"images" must be an array of objects')

    if errors:
        raise RequestValidationError(errors)
    return {"scrapedData": scraped, "generatedContent": generated, "images": images}


def validate_edit_request(body: Any) -> Dict[str, Any]:
    """Validate ``{catalogData, operations}``."""
    data = _require_object(body)
    errors: List[str] = []

    catalog = data.get("catalogData")
    if not isinstance(catalog, dict):
        errors.append('"catalogData" is required')
    else:
        _validate_catalog_structure(catalog, errors)
    operations = data.get("operations")
    if not isinstance(operations, list) or not all(isinstance(o, dict) for o in operations):
        errors.append('"operations" must be an array of objects')

    if errors:
        raise RequestValidationError(errors)
    return {"catalogData": data["catalogData"], "operations": operations}
