"""Embedded art and tag reading for audio files."""

from .embedded_art import EmbeddedArt, extract_embedded_art, read_media_tags

__all__ = [
    'EmbeddedArt',
    'extract_embedded_art',
    'read_media_tags',
]
