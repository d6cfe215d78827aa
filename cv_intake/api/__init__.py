"""Upload API package."""
