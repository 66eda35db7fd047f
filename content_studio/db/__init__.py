"""Database access package."""
