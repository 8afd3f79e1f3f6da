"""
Directory heuristics for locating existing artwork next to a media file.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Union

from .constants import (
    ALBUM_ART_KEYWORD,
    ALBUM_ART_LARGE_KEYWORD,
    ALBUM_ART_SMALL_KEYWORD,
    ALBUM_EXACT_KEYWORDS,
    CANDIDATE_EXTENSIONS,
    VIDEO_EXACT_KEYWORDS,
)
from .models import MatchTier, MediaArtType, require_valid_type
from .normalizer import strip_invalid_entities


@dataclass
class ArtSearch:
    """Normalized search terms for one media file"""
    art_type: MediaArtType
    artist_strdown: Optional[str] = None
    title_strdown: Optional[str] = None

    @classmethod
    def create(cls, art_type: MediaArtType, artist: Optional[str], title: Optional[str]) -> "ArtSearch":
        artist_strdown = strip_invalid_entities(artist).lower() if artist is not None else None
        title_strdown = strip_invalid_entities(title).lower() if title is not None else None
        return cls(art_type, artist_strdown, title_strdown)


def classify(file_name_strdown: str, search: ArtSearch) -> MatchTier:
    """Rank a lowercased image filename against the search terms"""
    if ((search.artist_strdown and search.artist_strdown in file_name_strdown) or
            (search.title_strdown and search.title_strdown in file_name_strdown)):
        return MatchTier.EXACT

    if search.art_type is MediaArtType.ALBUM:
        # cover/front/folder and AlbumArt_{GUID}_Large come first,
        # AlbumArt_{GUID}_Small second; a bare AlbumArt is not accepted
        if any(keyword in file_name_strdown for keyword in ALBUM_EXACT_KEYWORDS):
            return MatchTier.EXACT

        if ALBUM_ART_KEYWORD in file_name_strdown:
            if ALBUM_ART_LARGE_KEYWORD in file_name_strdown:
                return MatchTier.EXACT
            if ALBUM_ART_SMALL_KEYWORD in file_name_strdown:
                return MatchTier.EXACT_SMALL

    if search.art_type is MediaArtType.VIDEO:
        if any(keyword in file_name_strdown for keyword in VIDEO_EXACT_KEYWORDS):
            return MatchTier.EXACT

    return MatchTier.SAME_DIRECTORY


class CandidateClassifier:
    """Scans a media file's directory and picks the most likely artwork"""

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def classify_directory(self, directory: Union[str, Path], search: ArtSearch) -> Dict[MatchTier, List[str]]:
        """
        Classify every image in ``directory``.

        Names are visited in sorted order so ties resolve the same way on
        every run. Raises OSError when the directory cannot be listed.
        """
        tiers: Dict[MatchTier, List[str]] = {tier: [] for tier in MatchTier}

        for name in sorted(os.listdir(directory)):
            try:
                name.encode("utf-8")
            except UnicodeEncodeError:
                self.logger.debug(f"Could not convert filename '{name!r}' to UTF-8")
                continue

            name_strdown = name.lower()
            if not name_strdown.endswith(CANDIDATE_EXTENSIONS):
                continue

            tiers[classify(name_strdown, search)].append(name)

        return tiers

    def select(self, tiers: Dict[MatchTier, List[str]], art_type: MediaArtType) -> Optional[str]:
        """Apply the selection policy over classified names"""
        if tiers[MatchTier.EXACT]:
            return tiers[MatchTier.EXACT][0]
        if tiers[MatchTier.EXACT_SMALL]:
            return tiers[MatchTier.EXACT_SMALL][0]
        # A lone image next to a video is probably its poster; several
        # unrelated images are ambiguous
        if art_type is MediaArtType.VIDEO and len(tiers[MatchTier.SAME_DIRECTORY]) == 1:
            return tiers[MatchTier.SAME_DIRECTORY][0]
        return None

    def find_art(self,
                 media_path: Union[str, Path],
                 art_type: MediaArtType,
                 artist: Optional[str],
                 title: str) -> Optional[Path]:
        """
        Find likely artwork in the directory containing ``media_path``.

        Returns:
            Path of the chosen image, or None
        """
        require_valid_type(art_type)

        directory = Path(media_path).parent
        search = ArtSearch.create(art_type, artist, title)

        try:
            tiers = self.classify_directory(directory, search)
        except OSError as e:
            self.logger.debug(f"Media art directory could not be opened: {e}")
            return None

        chosen = self.select(tiers, art_type)
        if chosen is None:
            self.logger.debug(f"Album art NOT found in same directory: {directory}")
            return None

        return directory / chosen
