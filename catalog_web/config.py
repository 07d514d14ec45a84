"""Centralized configuration for the catalog web app."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

# Determine project root (parent of 'catalog_web' directory)
_THIS_DIR = Path(__file__).parent
_PROJECT_ROOT = _THIS_DIR.parent

# LLM Configuration
LLM_MODEL = os.getenv("LLM_MODEL", "gpt-4o")

# Flask app settings (allow env overrides; default debug off for safety)
# Hosting platforms set PORT dynamically; fall back to FLASK_PORT or 3001 for local.
FLASK_HOST = os.getenv("FLASK_HOST", "0.0.0.0")
FLASK_PORT = int(os.getenv("FLASK_PORT", os.getenv("PORT", "3001")))
FLASK_DEBUG = os.getenv("FLASK_DEBUG", "False").lower() == "true"

# Storage for uploaded and optimized images
UPLOAD_DIR = Path(os.getenv("UPLOAD_DIR", str(_PROJECT_ROOT / "uploads")))

# JSONL interaction logs
LOG_DIR = Path(os.getenv("LOG_DIR", str(_PROJECT_ROOT / "logs")))

# Scraping
SCRAPE_RENDER = os.getenv("SCRAPE_RENDER", "False").lower() == "true"

# Upload limits
MAX_UPLOAD_FILES = 15
MAX_UPLOAD_FILE_SIZE = 10 * 1024 * 1024  # 10MB per file
MAX_CONTENT_LENGTH = MAX_UPLOAD_FILES * MAX_UPLOAD_FILE_SIZE + 1024 * 1024


@dataclass
class AppSettings:
    """Settings handed to create_app and, from there, to each component."""

    upload_dir: Path = UPLOAD_DIR
    log_dir: Path = LOG_DIR
    llm_model: str = LLM_MODEL
    scrape_render: bool = SCRAPE_RENDER
    demo_user: Optional[str] = None
    demo_pass: Optional[str] = None
    max_content_length: int = MAX_CONTENT_LENGTH
    extra: dict = field(default_factory=dict)

    @classmethod
    def from_env(cls) -> "AppSettings":
        """Build settings from the current environment."""
        return cls(
            upload_dir=Path(os.getenv("UPLOAD_DIR", str(UPLOAD_DIR))),
            log_dir=Path(os.getenv("LOG_DIR", str(LOG_DIR))),
            llm_model=os.getenv("LLM_MODEL", LLM_MODEL),
            scrape_render=os.getenv("SCRAPE_RENDER", str(SCRAPE_RENDER)).lower() == "true",
            demo_user=os.getenv("DEMO_USER"),
            demo_pass=os.getenv("DEMO_PASS"),
        )
