"""Command-line interface for the media art cache."""
