"""PDF and DOCX rendering of a finished catalog.

Both renderers take the ``catalogData`` wire dict (product, generatedContent,
layout, images) plus the normalized export options and return the document
bytes. Only images stored in the upload directory are embedded; remote
image URLs are skipped.
"""

import logging
import re
from datetime import date
from io import BytesIO
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from docx import Document
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.shared import Inches, Pt, RGBColor
from PIL import Image
from reportlab.lib.pagesizes import letter
from reportlab.lib.utils import ImageReader
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

from .image_utils import resolve_upload_path

__all__ = [
    "render_pdf",
    "render_docx",
    "wrap_text",
    "export_filename",
    "COLOR_SCHEMES",
    "PDF_MIME_TYPE",
    "DOCX_MIME_TYPE",
]

logger = logging.getLogger(__name__)

PDF_MIME_TYPE = "application/pdf"
DOCX_MIME_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

SUBTITLE = "Professional Product Catalog"
APP_CREDIT = "Created with Product Catalog Generator"

# (primary, secondary) as RGB fractions
COLOR_SCHEMES: Dict[str, Tuple[Tuple[float, float, float], Tuple[float, float, float]]] = {
    "blue": ((0.15, 0.39, 0.92), (0.93, 0.96, 1.0)),
    "purple": ((0.49, 0.23, 0.93), (0.97, 0.93, 1.0)),
    "green": ((0.02, 0.59, 0.41), (0.93, 1.0, 0.97)),
    "red": ((0.92, 0.26, 0.21), (1.0, 0.93, 0.93)),
}

DESCRIPTION_WRAP = 70
MAX_DESCRIPTION_LINES = 8
MAX_PDF_FEATURES = 6
MAX_PDF_SPECS = 8
MAX_PDF_IMAGES = 3

# Longest side of embedded images per export quality; None keeps the stored size
IMAGE_MAX_DIMENSION = {"standard": 600, "high": 1200, "print": None}

_PDF_BOTTOM = 60

DOCX_TITLE_COLOR = "2563EB"
DOCX_SUBTITLE_COLOR = "64748B"
DOCX_HEADING_COLOR = "1E293B"
DOCX_FOOTER_COLOR = "94A3B8"


def wrap_text(text: str, max_length: int) -> List[str]:
    """Greedy word wrap; words longer than ``max_length`` get their own line."""
    lines: List[str] = []
    current = ""
    for word in text.split():
        if len(current) + len(word) + (1 if current else 0) <= max_length:
            current = f"{current} {word}" if current else word
        else:
            if current:
                lines.append(current)
            current = word
    if current:
        lines.append(current)
    return lines


def export_filename(title: str, ext: str) -> str:
    """Attachment filename: non-alphanumerics in the title become ``-``."""
    stem = re.sub(r"[^a-zA-Z0-9]", "-", title or "") or "catalog"
    return f"{stem}.{ext}"


def _format_date(day: date) -> str:
    return f"{day.month}/{day.day}/{day.year}"


def _ordered_images(catalog: Dict[str, Any]) -> List[Dict[str, Any]]:
    images = [img for img in catalog.get("images") or [] if isinstance(img, dict)]
    return sorted(images, key=lambda img: img.get("position", 0) or 0)


def _load_local_images(
    catalog: Dict[str, Any],
    upload_dir: Optional[Path],
    quality: str,
    limit: Optional[int] = None,
) -> List[Image.Image]:
    """Open the catalog's locally stored images as RGB, scaled for ``quality``."""
    if upload_dir is None:
        return []

    max_dimension = IMAGE_MAX_DIMENSION.get(quality, IMAGE_MAX_DIMENSION["high"])
    loaded = []
    for image in _ordered_images(catalog):
        path = resolve_upload_path(image.get("url", ""), upload_dir)
        if path is None:
            continue
        try:
            with Image.open(path) as img:
                rgb = img.convert("RGB")
        except OSError as e:
            logger.warning("Skipping unreadable image %s: %s", path.name, e)
            continue
        if max_dimension:
            rgb.thumbnail((max_dimension, max_dimension), Image.Resampling.LANCZOS)
        loaded.append(rgb)
        if limit and len(loaded) >= limit:
            break
    return loaded


def _fit_line(text: str, font: str, size: float, max_width: float) -> str:
    """Truncate ``text`` with an ellipsis so it fits ``max_width`` points."""
    if stringWidth(text, font, size) <= max_width:
        return text
    while text and stringWidth(text + "...", font, size) > max_width:
        text = text[:-1]
    return text.rstrip() + "..."


def render_pdf(
    catalog: Dict[str, Any],
    options: Dict[str, bool],
    upload_dir: Optional[Path] = None,
    quality: str = "high",
    today: Optional[date] = None,
) -> bytes:
    """Render a single US Letter page catalog with ReportLab.

    Args:
        catalog: catalogData wire dict.
        options: includeImages / includeSpecs / includeFeatures / includeBenefits.
        upload_dir: Directory holding uploaded images.
        quality: Export quality, controls embedded image resolution.
        today: Date printed in the footer (default: today).

    Returns:
        PDF bytes.
    """
    content = catalog.get("generatedContent") or {}
    layout = catalog.get("layout") or {}
    primary, _secondary = COLOR_SCHEMES.get(layout.get("colorScheme"), COLOR_SCHEMES["blue"])
    title = content.get("title") or ""

    buffer = BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=letter)
    pdf.setTitle(title)
    pdf.setSubject(SUBTITLE)
    width, height = letter

    # Header band
    pdf.setFillColorRGB(*primary)
    pdf.rect(0, height - 120, width, 120, stroke=0, fill=1)

    pdf.setFillColorRGB(1, 1, 1)
    pdf.setFont("Helvetica-Bold", 24)
    pdf.drawString(50, height - 70, _fit_line(title, "Helvetica-Bold", 24, width - 100))

    pdf.setFillColorRGB(0.9, 0.9, 0.9)
    pdf.setFont("Helvetica", 14)
    pdf.drawString(50, height - 100, SUBTITLE)

    y = height - 160

    # Overview
    pdf.setFillColorRGB(*primary)
    pdf.setFont("Helvetica-Bold", 18)
    pdf.drawString(50, y, "Product Overview")
    y -= 30

    pdf.setFillColorRGB(0.2, 0.2, 0.2)
    pdf.setFont("Times-Roman", 11)
    description_lines = wrap_text(content.get("description") or "", DESCRIPTION_WRAP)
    for line in description_lines[:MAX_DESCRIPTION_LINES]:
        pdf.drawString(50, y, _fit_line(line, "Times-Roman", 11, width - 100))
        y -= 16
    y -= 20

    if options.get("includeImages", True):
        images = _load_local_images(catalog, upload_dir, quality, MAX_PDF_IMAGES)
        if images:
            slot_width = (width - 100 - 20 * (MAX_PDF_IMAGES - 1)) / MAX_PDF_IMAGES
            slot_height = 120
            x = 50
            for img in images:
                scale = min(slot_width / img.width, slot_height / img.height)
                draw_w, draw_h = img.width * scale, img.height * scale
                pdf.drawImage(
                    ImageReader(img), x, y - draw_h, width=draw_w, height=draw_h
                )
                x += slot_width + 20
            y -= slot_height + 25

    features = content.get("features") or []
    if options.get("includeFeatures", True) and features and y > _PDF_BOTTOM + 40:
        pdf.setFillColorRGB(*primary)
        pdf.setFont("Helvetica-Bold", 16)
        pdf.drawString(50, y, "Key Features")
        y -= 25

        pdf.setFillColorRGB(0.3, 0.3, 0.3)
        pdf.setFont("Helvetica", 10)
        for feature in features[:MAX_PDF_FEATURES]:
            if y < _PDF_BOTTOM:
                break
            pdf.drawString(60, y, _fit_line(f"• {feature}", "Helvetica", 10, width - 120))
            y -= 18
        y -= 15

    specs = content.get("specifications") or {}
    if options.get("includeSpecs", True) and specs and y > _PDF_BOTTOM + 40:
        pdf.setFillColorRGB(*primary)
        pdf.setFont("Helvetica-Bold", 16)
        pdf.drawString(50, y, "Specifications")
        y -= 25

        for key, value in list(specs.items())[:MAX_PDF_SPECS]:
            if y < _PDF_BOTTOM:
                break
            pdf.setFillColorRGB(0.2, 0.2, 0.2)
            pdf.setFont("Helvetica-Bold", 10)
            pdf.drawString(60, y, _fit_line(f"{key}:", "Helvetica-Bold", 10, 135))
            pdf.setFillColorRGB(0.4, 0.4, 0.4)
            pdf.setFont("Helvetica", 10)
            pdf.drawString(200, y, _fit_line(str(value), "Helvetica", 10, width - 250))
            y -= 18

    # Footer
    pdf.setFillColorRGB(0.6, 0.6, 0.6)
    pdf.setFont("Helvetica", 8)
    pdf.drawString(50, 30, f"Generated on {_format_date(today or date.today())}")
    pdf.drawString(width - 250, 30, APP_CREDIT)

    pdf.showPage()
    pdf.save()
    return buffer.getvalue()


def _docx_run(paragraph, text: str, size: float, color: Optional[str] = None,
              bold: bool = False, italic: bool = False):
    run = paragraph.add_run(text)
    run.font.size = Pt(size)
    run.bold = bold
    run.italic = italic
    if color:
        run.font.color.rgb = RGBColor.from_string(color)
    return run


def _docx_heading(document, text: str) -> None:
    heading = document.add_paragraph(style="Heading 1")
    heading.paragraph_format.space_before = Pt(20)
    heading.paragraph_format.space_after = Pt(10)
    _docx_run(heading, text, 12, DOCX_HEADING_COLOR, bold=True)


def _docx_bullets(document, items: List[str]) -> None:
    for item in items:
        paragraph = document.add_paragraph()
        paragraph.paragraph_format.space_after = Pt(5)
        _docx_run(paragraph, f"• {item}", 10)


def render_docx(
    catalog: Dict[str, Any],
    options: Dict[str, bool],
    upload_dir: Optional[Path] = None,
    quality: str = "high",
    today: Optional[date] = None,
) -> bytes:
    """Render the catalog as a Word document with python-docx.

    Returns:
        DOCX bytes.
    """
    content = catalog.get("generatedContent") or {}
    document = Document()
    document.core_properties.title = content.get("title") or ""
    document.core_properties.subject = SUBTITLE

    title = document.add_paragraph(style="Title")
    title.alignment = WD_ALIGN_PARAGRAPH.CENTER
    title.paragraph_format.space_after = Pt(20)
    _docx_run(title, content.get("title") or "", 16, DOCX_TITLE_COLOR, bold=True)

    subtitle = document.add_paragraph()
    subtitle.alignment = WD_ALIGN_PARAGRAPH.CENTER
    subtitle.paragraph_format.space_after = Pt(30)
    _docx_run(subtitle, SUBTITLE, 10, DOCX_SUBTITLE_COLOR)

    if options.get("includeImages", True):
        for img in _load_local_images(catalog, upload_dir, quality):
            stream = BytesIO()
            img.save(stream, format="PNG")
            stream.seek(0)
            document.add_picture(stream, width=Inches(4))
            document.paragraphs[-1].alignment = WD_ALIGN_PARAGRAPH.CENTER

    _docx_heading(document, "Product Overview")
    overview = document.add_paragraph()
    overview.paragraph_format.space_after = Pt(20)
    _docx_run(overview, content.get("description") or "", 11)

    features = content.get("features") or []
    if options.get("includeFeatures", True) and features:
        _docx_heading(document, "Key Features")
        _docx_bullets(document, features)

    specs = content.get("specifications") or {}
    if options.get("includeSpecs", True) and specs:
        _docx_heading(document, "Specifications")
        for key, value in specs.items():
            paragraph = document.add_paragraph()
            paragraph.paragraph_format.space_after = Pt(5)
            _docx_run(paragraph, f"{key}: ", 10, bold=True)
            _docx_run(paragraph, str(value), 10)

    benefits = content.get("benefits") or []
    if options.get("includeBenefits", True) and benefits:
        _docx_heading(document, "Why Choose This Product")
        _docx_bullets(document, benefits)

    footer = document.add_paragraph()
    footer.alignment = WD_ALIGN_PARAGRAPH.CENTER
    footer.paragraph_format.space_before = Pt(40)
    _docx_run(
        footer,
        f"Generated on {_format_date(today or date.today())} with Product Catalog Generator",
        8,
        DOCX_FOOTER_COLOR,
        italic=True,
    )

    buffer = BytesIO()
    document.save(buffer)
    return buffer.getvalue()
