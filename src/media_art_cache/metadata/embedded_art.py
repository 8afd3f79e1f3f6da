"""
Embedded Art Extraction

Reads the cover image and the artist/album/title tags of an audio file
with mutagen, so callers can feed them to MediaArtProcess.process_file.
"""

import base64
import binascii
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Union

import mutagen
from mutagen.flac import FLAC, Picture
from mutagen.id3 import ID3
from mutagen.mp4 import MP4, MP4Cover

logger = logging.getLogger(__name__)

# APIC / FLAC picture type for the front cover
FRONT_COVER = 3

_MP4_FORMATS = {
    MP4Cover.FORMAT_JPEG: "image/jpeg",
    MP4Cover.FORMAT_PNG: "image/png",
}


@dataclass
class EmbeddedArt:
    """Image bytes found inside a media file"""
    data: bytes
    mime: Optional[str] = None


def _pick_front(pictures):
    """Prefer the front cover, otherwise the first picture"""
    for picture in pictures:
        if getattr(picture, "type", None) == FRONT_COVER:
            return picture
    return pictures[0] if pictures else None


def _from_id3(tags: ID3) -> Optional[EmbeddedArt]:
    picture = _pick_front(tags.getall("APIC"))
    if picture is None:
        return None
    return EmbeddedArt(bytes(picture.data), picture.mime or None)


def _from_mp4(audio: MP4) -> Optional[EmbeddedArt]:
    covers = (audio.tags or {}).get("covr") or []
    if not covers:
        return None
    cover = covers[0]
    return EmbeddedArt(bytes(cover), _MP4_FORMATS.get(getattr(cover, "imageformat", None)))


def _from_vorbis_comment(tags) -> Optional[EmbeddedArt]:
    pictures = []
    for encoded in tags.get("metadata_block_picture", []):
        try:
            pictures.append(Picture(base64.b64decode(encoded)))
        except (binascii.Error, ValueError, mutagen.MutagenError) as e:
            logger.debug(f"Skipping undecodable METADATA_BLOCK_PICTURE: {e}")

    picture = _pick_front(pictures)
    if picture is None:
        return None
    return EmbeddedArt(bytes(picture.data), picture.mime or None)


def extract_embedded_art(file_path: Union[str, Path]) -> Optional[EmbeddedArt]:
    """
    Extract the embedded cover image from an audio file.

    Supports ID3 (APIC frames), MP4 (covr atoms), FLAC pictures and Ogg
    METADATA_BLOCK_PICTURE comments.

    Returns:
        EmbeddedArt, or None when the file has no picture or can't be parsed
    """
    try:
        audio = mutagen.File(str(file_path))
    except (mutagen.MutagenError, OSError) as e:
        logger.debug(f"Could not read tags from {file_path}: {e}")
        return None

    if audio is None:
        return None

    if isinstance(audio, MP4):
        return _from_mp4(audio)

    if isinstance(audio, FLAC):
        picture = _pick_front(audio.pictures)
        if picture is not None:
            return EmbeddedArt(bytes(picture.data), picture.mime or None)
        return None

    tags = audio.tags
    if tags is None:
        return None
    if isinstance(tags, ID3):
        return _from_id3(tags)
    if hasattr(tags, "get"):
        return _from_vorbis_comment(tags)
    return None


def read_media_tags(file_path: Union[str, Path]) -> Dict[str, Optional[str]]:
    """
    Read artist, album and title tags.

    Missing tags (or unreadable files) give None values.
    """
    metadata: Dict[str, Optional[str]] = {"artist": None, "album": None, "title": None}

    try:
        audio = mutagen.File(str(file_path), easy=True)
    except (mutagen.MutagenError, OSError) as e:
        logger.debug(f"Could not read tags from {file_path}: {e}")
        return metadata

    if audio is None or audio.tags is None:
        return metadata

    for key in metadata:
        value = audio.tags.get(key)
        if isinstance(value, list):
            value = value[0] if value else None
        if value:
            metadata[key] = str(value).strip() or None

    return metadata
