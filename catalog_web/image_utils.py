"""Image processing utilities for the catalog web app.

Handles validation, resizing and WebP conversion of uploaded product images,
derived (optimized) variants, and deletion. All functions take the upload
directory explicitly.
"""

import logging
import secrets
import string
import time
from io import BytesIO
from pathlib import Path
from typing import Any, Dict, Optional
from urllib.parse import urlparse

from PIL import Image, ImageOps, UnidentifiedImageError

from .config import MAX_UPLOAD_FILE_SIZE
from .validation import IMAGE_FORMATS, validate_image_id

__all__ = [
    "process_upload",
    "optimize_image",
    "delete_image",
    "resolve_upload_path",
    "ImageProcessingError",
    "ImageNotFoundError",
    "ALLOWED_MIME_TYPES",
    "UPLOAD_MAX_DIMENSION",
    "UPLOAD_QUALITY",
]

logger = logging.getLogger(__name__)

ALLOWED_MIME_TYPES = {"image/jpeg", "image/png", "image/webp"}
ALLOWED_PIL_FORMATS = {"JPEG", "PNG", "WEBP"}

UPLOAD_MAX_DIMENSION = 1200
UPLOAD_QUALITY = 85

_PIL_SAVE_FORMATS = {"webp": "WEBP", "jpeg": "JPEG", "png": "PNG"}
_ID_ALPHABET = string.ascii_lowercase + string.digits


class ImageProcessingError(Exception):
    """Raised when an upload is rejected or cannot be decoded."""
    pass


class ImageNotFoundError(Exception):
    """Raised when a stored image does not exist."""
    pass


def _new_image_id() -> str:
    """``<millis>-<random>``, matching the stored filename stem."""
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(6))
    return f"{int(time.time() * 1000)}-{suffix}"


def _open_image(data: bytes) -> Image.Image:
    try:
        img = Image.open(BytesIO(data))
        img.load()
    except (UnidentifiedImageError, OSError) as e:
        raise ImageProcessingError(f"Could not read image: {e}") from e
    return img


def _prepare_mode(img: Image.Image, target_format: str) -> Image.Image:
    """Convert to a pixel mode the target encoder accepts."""
    if target_format == "jpeg":
        if img.mode in ("RGBA", "LA", "P"):
            # JPEG has no alpha: flatten onto white
            if img.mode == "P":
                img = img.convert("RGBA")
            background = Image.new("RGB", img.size, (255, 255, 255))
            background.paste(img, mask=img.split()[-1])
            return background
        return img.convert("RGB") if img.mode != "RGB" else img

    if img.mode in ("RGB", "RGBA"):
        return img
    if img.mode in ("LA", "P") or "transparency" in img.info:
        return img.convert("RGBA")
    return img.convert("RGB")


def _fit_inside(img: Image.Image, width: Optional[int], height: Optional[int]) -> Image.Image:
    """Resize to fit inside width x height, never enlarging."""
    if not width and not height:
        return img
    box = (width or img.width, height or img.height)
    resized = img.copy()
    resized.thumbnail(box, Image.Resampling.LANCZOS)
    return resized


def _save(img: Image.Image, path: Path, fmt: str, quality: int) -> None:
    save_kwargs: Dict[str, Any] = {"format": _PIL_SAVE_FORMATS[fmt]}
    if fmt == "png":
        save_kwargs["optimize"] = True
    else:
        save_kwargs["quality"] = quality
    _prepare_mode(img, fmt).save(path, **save_kwargs)


def process_upload(
    data: bytes,
    original_name: str,
    upload_dir: Path,
    content_type: Optional[str] = None,
) -> Dict[str, Any]:
    """Validate, resize and store one uploaded image as WebP.

    Args:
        data: Raw uploaded bytes.
        original_name: Client-side filename, echoed back as ``originalName``.
        upload_dir: Directory to write the stored image to.
        content_type: MIME type declared by the client, if any.

    Returns:
        Dict with id, filename, originalName, url, size, width, height, format.

    Raises:
        ImageProcessingError: If the file is too large, of the wrong type, or unreadable.
    """
    if content_type and content_type.split(";")[0].strip().lower() not in ALLOWED_MIME_TYPES:
        raise ImageProcessingError("Invalid file type. Only JPEG, PNG, and WebP are allowed.")
    if len(data) > MAX_UPLOAD_FILE_SIZE:
        size_mb = len(data) / (1024 * 1024)
        raise ImageProcessingError(
            f"Image too large ({size_mb:.1f}MB). Please use an image smaller than 10MB."
        )

    img = _open_image(data)
    if img.format not in ALLOWED_PIL_FORMATS:
        raise ImageProcessingError("Invalid file type. Only JPEG, PNG, and WebP are allowed.")

    img = ImageOps.exif_transpose(img)
    img = _fit_inside(img, UPLOAD_MAX_DIMENSION, UPLOAD_MAX_DIMENSION)

    upload_dir = Path(upload_dir)
    upload_dir.mkdir(parents=True, exist_ok=True)
    image_id = _new_image_id()
    filename = f"{image_id}.webp"
    _save(img, upload_dir / filename, "webp", UPLOAD_QUALITY)

    logger.debug("Stored upload %s as %s (%dx%d)", original_name, filename, img.width, img.height)
    return {
        "id": image_id,
        "filename": filename,
        "originalName": original_name,
        "url": f"/uploads/{filename}",
        "size": len(data),
        "width": img.width,
        "height": img.height,
        "format": "webp",
    }


def _variant_filename(
    image_id: str, width: Optional[int], height: Optional[int], quality: int, fmt: str
) -> str:
    w = width if width else "auto"
    h = height if height else "auto"
    return f"{image_id}-{w}x{h}-q{quality}.{fmt}"


def optimize_image(
    image_id: str,
    upload_dir: Path,
    width: Optional[int] = None,
    height: Optional[int] = None,
    quality: int = 85,
    fmt: str = "webp",
) -> Dict[str, Any]:
    """Create (or reuse) a resized, re-encoded variant of a stored image.

    Returns:
        Dict with url, width, height, quality, format.

    Raises:
        ImageNotFoundError: If the source image does not exist.
        ImageProcessingError: If the format is not supported.
    """
    validate_image_id(image_id)
    if fmt not in IMAGE_FORMATS:
        raise ImageProcessingError(f"Unsupported format: {fmt}")

    upload_dir = Path(upload_dir)
    source = upload_dir / f"{image_id}.webp"
    variant_name = _variant_filename(image_id, width, height, quality, fmt)
    variant = upload_dir / variant_name
    result = {
        "url": f"/uploads/{variant_name}",
        "width": width,
        "height": height,
        "quality": quality,
        "format": fmt,
    }

    if variant.exists():
        logger.debug("Reusing optimized image %s", variant_name)
        return result

    if not source.exists():
        raise ImageNotFoundError(f"Image not found: {image_id}")

    with Image.open(source) as img:
        img.load()
        _save(_fit_inside(img, width, height), variant, fmt, quality)

    return result


def delete_image(image_id: str, upload_dir: Path) -> int:
    """Delete a stored image and its optimized variants.

    Returns:
        Number of files removed.

    Raises:
        ImageNotFoundError: If the stored image does not exist.
    """
    validate_image_id(image_id)
    upload_dir = Path(upload_dir)
    source = upload_dir / f"{image_id}.webp"
    if not source.is_file():
        raise ImageNotFoundError(f"Image not found: {image_id}")

    source.unlink()
    removed = 1
    for variant in upload_dir.glob(f"{image_id}-*x*-q*.*"):
        variant.unlink()
        removed += 1

    logger.info("Deleted image: %s", image_id)
    return removed


def resolve_upload_path(url: str, upload_dir: Path) -> Optional[Path]:
    """Map an ``/uploads/<filename>`` URL to a file inside ``upload_dir``.

    Absolute URLs pointing at this app's ``/uploads/`` path are accepted too.
    Returns None for other URLs, unknown files, or names that would escape
    the directory.
    """
    if not isinstance(url, str):
        return None
    path_part = urlparse(url).path
    if not path_part.startswith("/uploads/"):
        return None
    filename = path_part[len("/uploads/"):]
    if not filename or "/" in filename or "\\" in filename or filename.startswith("."):
        return None

    path = Path(upload_dir) / filename
    return path if path.is_file() else None
