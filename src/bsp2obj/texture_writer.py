"""
Texture export for embedded BSP textures.

Decodes the palettized mip 0 image of a miptex record and writes it as TGA.
"""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np
from PIL import Image

from .bsp_parser import MipTexture
from .constants import PALETTE_ENTRIES, TRANSPARENT_PALETTE_INDEX, TRANSPARENT_TEXTURE_PREFIX


logger = logging.getLogger(__name__)


class TextureExportError(RuntimeError):
    """Raised when a texture cannot be decoded for export."""


def decode_miptex(texture: MipTexture) -> Image.Image:
    """
    Decode a miptex record to an image.

    Alpha-tested textures (names starting with "{") decode to RGBA with
    palette index 255 fully transparent; all others decode to RGB.
    """
    if not texture.is_embedded or texture.pixels is None or texture.palette is None:
        raise TextureExportError(f"Texture {texture.name!r} has no embedded image data")

    width, height = texture.width, texture.height
    if width <= 0 or height <= 0:
        raise TextureExportError(
            f"Texture {texture.name!r} has invalid dimensions {width}x{height}"
        )
    if len(texture.pixels) != width * height:
        raise TextureExportError(
            f"Texture {texture.name!r} has {len(texture.pixels)} pixels, "
            f"expected {width * height}"
        )

    palette = np.frombuffer(texture.palette, dtype=np.uint8)
    palette = palette[: (len(palette) // 3) * 3].reshape(-1, 3)
    if len(palette) == 0:
        raise TextureExportError(f"Texture {texture.name!r} has an empty palette")
    if len(palette) < PALETTE_ENTRIES:
        # Short palettes leave the remaining indices black
        palette = np.vstack(
            [palette, np.zeros((PALETTE_ENTRIES - len(palette), 3), dtype=np.uint8)]
        )

    indices = np.frombuffer(texture.pixels, dtype=np.uint8).reshape(height, width)
    rgb = palette[indices]

    if texture.name.startswith(TRANSPARENT_TEXTURE_PREFIX):
        alpha = np.where(indices == TRANSPARENT_PALETTE_INDEX, 0, 255).astype(np.uint8)
        rgba = np.dstack([rgb, alpha])
        return Image.frombytes("RGBA", (width, height), rgba.tobytes())

    return Image.frombytes("RGB", (width, height), np.ascontiguousarray(rgb).tobytes())


class TextureWriter:
    """
    Writes embedded textures as TGA images into a destination directory.
    """

    def __init__(self, destination_directory: str | Path):
        self.destination_directory = Path(destination_directory)

    def write(self, file_name: str, texture: MipTexture) -> Path:
        """
        Decode a texture and save it under the destination directory.

        Args:
            file_name: Image file name, relative to the destination directory
            texture: Embedded texture record

        Returns:
            Path of the written image

        Raises:
            TextureExportError: If the texture holds no usable image data
            OSError: If the image cannot be written
        """
        image = decode_miptex(texture)
        path = self.destination_directory / file_name
        image.save(path, format="TGA")
        logger.debug(f"Wrote texture {texture.name} ({texture.width}x{texture.height}) to {path}")
        return path
