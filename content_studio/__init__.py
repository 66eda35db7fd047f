"""Content Studio backend: asynchronous AI content generation."""

__version__ = "1.0.0"
