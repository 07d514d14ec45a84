"""Flask web app for the product catalog generator."""

from .app import create_app

__all__ = ["create_app"]
