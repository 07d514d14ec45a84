"""API endpoints for the catalog generator.

The flow the UI drives:
1. Scrape - fetch a product page and run the extraction engine
2. Generate - LLM marketing copy (plus optional improvement suggestions)
3. Images - upload/optimize/delete own images or pick curated stock photos
4. Catalog - build the editable block model and apply editor operations
5. Export - render the finished catalog as PDF or DOCX

All JSON responses use ``{success, data?, error?, message?}``.
"""

import logging
from typing import Any, Dict, Tuple

from flask import Blueprint, Response, current_app, jsonify, request

from product_scrape.scraper import PageFetchError, scrape_product

from .catalog import CatalogData, CatalogEditError, apply_operations, build_catalog, sync_blocks_to_content
from .config import MAX_UPLOAD_FILES, AppSettings
from .content_generation import ContentGenerationError, generate_content, suggest_improvements
from .export import DOCX_MIME_TYPE, PDF_MIME_TYPE, export_filename, render_docx, render_pdf
from .image_utils import (
    ImageNotFoundError,
    ImageProcessingError,
    delete_image,
    optimize_image,
    process_upload,
)
from .logging_utils import log_interaction
from .stock_images import search_stock_images
from .timing import get_timings, timer
from .validation import (
    RequestValidationError,
    validate_build_request,
    validate_content_request,
    validate_edit_request,
    validate_export_request,
    validate_image_id,
    validate_optimize_request,
    validate_scrape_request,
    validate_stock_search_request,
)

__all__ = ["api", "FETCH_FAILED_MESSAGE"]

logger = logging.getLogger(__name__)

# Create blueprint for API
api = Blueprint("api", __name__, url_prefix="/api")

FETCH_FAILED_MESSAGE = "Failed to load the page. The site may be down or blocking bots."


def _settings() -> AppSettings:
    return current_app.config["CATALOG_SETTINGS"]


def _json_body(allow_empty: bool = False) -> Any:
    """Decoded JSON body, or a validation error when it is missing or malformed."""
    body = request.get_json(silent=True)
    if body is None:
        if allow_empty and not request.get_data():
            return {}
        raise RequestValidationError(["Request body must be valid JSON"])
    return body


def _error(status: int, error: str, message: str = "") -> Tuple[Response, int]:
    payload: Dict[str, Any] = {"success": False, "error": error}
    if message:
        payload["message"] = message
    return jsonify(payload), status


@api.errorhandler(RequestValidationError)
def handle_validation_error(e: RequestValidationError) -> Tuple[Response, int]:
    return jsonify({"success": False, "error": "Validation failed", "details": e.details}), 400


@api.after_request
def log_performance(response: Response) -> Response:
    """Record per-request timings in the interaction log."""
    timings = get_timings()
    if timings:
        log_interaction(
            "performance",
            {"endpoint": request.path, "status": response.status_code, "timings": timings},
            _settings().log_dir,
        )
    return response


# ---------- SCRAPER ----------


@api.route("/scraper/scrape", methods=["POST"])
def scrape() -> Any:
    """Scrape a product page into ScrapedData."""
    url = validate_scrape_request(_json_body())["url"]
    settings = _settings()
    logger.info("Starting scrape for URL: %s", url)

    try:
        with timer("scrape_product"):
            scraped = scrape_product(url, render=settings.scrape_render)
    except PageFetchError as e:
        logger.error("Scraping failed for %s: %s", url, e)
        return _error(502, FETCH_FAILED_MESSAGE, str(e))

    return jsonify({"success": True, "data": scraped.to_dict()})


# ---------- AI CONTENT ----------


@api.route("/ai/generate-content", methods=["POST"])
def generate() -> Any:
    """Generate marketing copy for scraped product data."""
    body = validate_content_request(_json_body())
    settings = _settings()

    try:
        with timer("llm_generate_content"):
            content = generate_content(
                body["productData"],
                body["options"],
                model=settings.llm_model,
                log_dir=settings.log_dir,
            )
    except ContentGenerationError as e:
        return _error(500, "Failed to generate AI content", str(e))

    return jsonify({"success": True, "data": content.to_dict()})


@api.route("/ai/suggest-improvements", methods=["POST"])
def suggestions() -> Any:
    """Suggest improvements for existing catalog content."""
    body = validate_content_request(_json_body())
    settings = _settings()

    try:
        with timer("llm_suggest_improvements"):
            data = suggest_improvements(
                body["productData"], model=settings.llm_model, log_dir=settings.log_dir
            )
    except ContentGenerationError as e:
        return _error(500, "Failed to generate suggestions", str(e))

    return jsonify({"success": True, "data": data})


# ---------- IMAGES ----------


@api.route("/images/upload", methods=["POST"])
def upload_images() -> Any:
    """Store uploaded images as resized WebP files."""
    files = [f for f in request.files.getlist("images") if f and f.filename]
    if not files:
        return _error(400, "No files uploaded")
    if len(files) > MAX_UPLOAD_FILES:
        return _error(400, f"Too many files. Maximum is {MAX_UPLOAD_FILES}.")

    upload_dir = _settings().upload_dir
    processed = []
    try:
        with timer("image_upload"):
            for storage in files:
                processed.append(
                    process_upload(storage.read(), storage.filename, upload_dir, storage.mimetype)
                )
    except ImageProcessingError as e:
        return _error(400, "Failed to process images", str(e))
    except OSError as e:
        logger.exception("Image upload error")
        return _error(500, "Failed to process images", str(e))

    logger.info("Processed %d images", len(processed))
    return jsonify({"success": True, "data": processed})


@api.route("/images/search-unsplash", methods=["POST"])
def search_unsplash() -> Any:
    """Return curated stock photos for a query."""
    body = validate_stock_search_request(_json_body())
    images = search_stock_images(body["query"], body["count"], body["orientation"])
    logger.info("Found %d stock images for query: %s", len(images), body["query"])
    return jsonify({"success": True, "data": images, "total": len(images)})


@api.route("/images/optimize/<image_id>", methods=["POST"])
def optimize(image_id: str) -> Any:
    """Create a resized/re-encoded variant of an uploaded image."""
    validate_image_id(image_id)
    body = validate_optimize_request(_json_body(allow_empty=True))

    try:
        with timer("image_optimize"):
            data = optimize_image(
                image_id,
                _settings().upload_dir,
                width=body["width"],
                height=body["height"],
                quality=body["quality"],
                fmt=body["format"],
            )
    except ImageNotFoundError as e:
        return _error(404, "Image not found", str(e))
    except (ImageProcessingError, OSError) as e:
        logger.exception("Image optimization error")
        return _error(500, "Failed to optimize image", str(e))

    return jsonify({"success": True, "data": data})


@api.route("/images/<image_id>", methods=["DELETE"])
def remove_image(image_id: str) -> Any:
    """Delete an uploaded image."""
    validate_image_id(image_id)
    try:
        delete_image(image_id, _settings().upload_dir)
    except (ImageNotFoundError, OSError) as e:
        return _error(404, "Image not found or could not be deleted", str(e))
    return jsonify({"success": True, "message": "Image deleted successfully"})


# ---------- CATALOG ----------


@api.route("/catalog/build", methods=["POST"])
def catalog_build() -> Any:
    """Assemble the editable catalog from scrape output, copy and images."""
    body = validate_build_request(_json_body())
    catalog = build_catalog(body["scrapedData"], body["generatedContent"], body["images"])
    return jsonify({"success": True, "data": catalog.to_dict()})


@api.route("/catalog/edit", methods=["POST"])
def catalog_edit() -> Any:
    """Apply editor operations to a catalog."""
    body = validate_edit_request(_json_body())
    try:
        catalog = CatalogData.from_dict(body["catalogData"])
        edited = apply_operations(catalog, body["operations"])
    except CatalogEditError as e:
        return _error(400, "Invalid catalog edit", str(e))
    return jsonify({"success": True, "data": edited.to_dict()})


# ---------- EXPORT ----------


def _export_catalog(catalog_data: Dict[str, Any]) -> Dict[str, Any]:
    """Fold editor block edits into the content before rendering."""
    if not catalog_data.get("contentBlocks"):
        return catalog_data
    try:
        catalog = CatalogData.from_dict(catalog_data)
    except CatalogEditError as e:
        raise RequestValidationError([str(e)]) from e
    return sync_blocks_to_content(catalog).to_dict()


def _export(fmt: str) -> Any:
    body = validate_export_request(_json_body(), expected_format=fmt)
    catalog = _export_catalog(body["catalogData"])
    title = catalog["generatedContent"]["title"]
    renderer, mime_type = (render_pdf, PDF_MIME_TYPE) if fmt == "pdf" else (render_docx, DOCX_MIME_TYPE)
    logger.info("Generating %s for: %s", fmt.upper(), title)

    try:
        with timer(f"export_{fmt}"):
            document = renderer(
                catalog, body["options"], upload_dir=_settings().upload_dir, quality=body["quality"]
            )
    except (OSError, ValueError) as e:
        logger.exception("%s generation error", fmt.upper())
        return _error(500, f"Failed to generate {fmt.upper()}", str(e))

    filename = export_filename(title, fmt)
    return Response(
        document,
        mimetype=mime_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@api.route("/export/pdf", methods=["POST"])
def export_pdf() -> Any:
    """Export the catalog as PDF."""
    return _export("pdf")


@api.route("/export/docx", methods=["POST"])
def export_docx() -> Any:
    """Export the catalog as DOCX."""
    return _export("docx")
