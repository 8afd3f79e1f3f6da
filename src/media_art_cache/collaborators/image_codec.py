"""
JPEG conversion backend built on Pillow.

JPEG has no alpha channel, so transparent images are flattened onto an
opaque background before encoding. Images wider than ``max_width`` are
scaled down proportionally.
"""

import io
import logging
from pathlib import Path
from typing import Optional, Union

from PIL import Image, ImageColor, UnidentifiedImageError

from ..core.constants import DEFAULT_BACKGROUND_COLOR, DEFAULT_JPEG_QUALITY, JPEG_SOI_MARKER
from ..core.errors import CodecFailure

PathLike = Union[str, Path]


class ImageCodec:
    """Interface the reconciliation engine uses for format conversion"""

    def file_to_jpeg(self, source: PathLike, dest: PathLike) -> None:
        raise NotImplementedError

    def buffer_to_jpeg(self, data: bytes, mime: Optional[str], dest: PathLike) -> None:
        raise NotImplementedError


class PillowImageCodec(ImageCodec):
    """
    Pillow implementation of the image codec.

    Raises CodecFailure on any decode or encode error; the caller owns
    ``dest`` and is responsible for discarding it on failure.
    """

    def __init__(self,
                 max_width: int = 0,
                 jpeg_quality: int = DEFAULT_JPEG_QUALITY,
                 background_color: str = DEFAULT_BACKGROUND_COLOR):
        if max_width < 0:
            raise ValueError("max_width must be 0 (unlimited) or positive")
        self.logger = logging.getLogger(__name__)
        self.max_width = max_width
        self.jpeg_quality = jpeg_quality
        self.background = ImageColor.getrgb(background_color)[:3]

    def file_to_jpeg(self, source: PathLike, dest: PathLike) -> None:
        try:
            with Image.open(source) as img:
                self._save_jpeg(img, dest)
        except (UnidentifiedImageError, OSError, ValueError) as e:
            raise CodecFailure(f"Could not convert '{source}' to JPEG: {e}") from e

    def buffer_to_jpeg(self, data: bytes, mime: Optional[str], dest: PathLike) -> None:
        if self.max_width == 0 and bytes(data[:3]) == JPEG_SOI_MARKER:
            self.logger.debug(f"Saving album art using raw data as uri:'{dest}'")
            try:
                with open(dest, 'wb') as f:
                    f.write(data)
            except OSError as e:
                raise CodecFailure(f"Could not write '{dest}': {e.strerror}") from e
            return

        self.logger.debug(f"Saving album art using Pillow for uri:'{dest}' (max width:{self.max_width})")
        try:
            with Image.open(io.BytesIO(data)) as img:
                self._save_jpeg(img, dest)
        except (UnidentifiedImageError, OSError, ValueError) as e:
            raise CodecFailure(f"Could not decode {mime or 'image'} buffer: {e}") from e

    def _save_jpeg(self, img: Image.Image, dest: PathLike) -> None:
        img = self._flatten(img)

        if self.max_width > 0 and img.width > self.max_width:
            self.logger.debug(f"Resizing media art to {self.max_width} width")
            height = max(1, round(img.height * self.max_width / img.width))
            img = img.resize((self.max_width, height), Image.Resampling.LANCZOS)

        img.save(dest, format="JPEG", quality=self.jpeg_quality)

    def _flatten(self, img: Image.Image) -> Image.Image:
        """Composite transparency onto the background and return an RGB image"""
        has_alpha = img.mode in ("RGBA", "LA", "PA") or (
            img.mode == "P" and "transparency" in img.info
        )

        if has_alpha:
            rgba = img.convert("RGBA")
            flattened = Image.new("RGB", rgba.size, self.background)
            flattened.paste(rgba, mask=rgba.getchannel("A"))
            return flattened

        if img.mode not in ("RGB", "L"):
            return img.convert("RGB")

        return img
