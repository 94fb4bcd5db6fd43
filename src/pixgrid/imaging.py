from pathlib import Path

import numpy as np
from PIL import Image

from pixgrid.grid import PixelGrid
from pixgrid.pixel import pack_channels, unpack_channels


def to_image(grid: PixelGrid) -> Image.Image:
    """Copy a grid into a new RGBA Pillow image."""
    width, height = grid.size()
    rgba = unpack_channels(grid.pixels).reshape(height, width, 4)
    if not (width and height):
        return Image.new("RGBA", (width, height))
    return Image.fromarray(np.ascontiguousarray(rgba))


def from_image(image: Image.Image | str | Path) -> PixelGrid:
    """Build a grid from a Pillow image or any file Pillow can open."""
    if not isinstance(image, Image.Image):
        image = Image.open(image)
    image = image.convert("RGBA")
    rgba = np.asarray(image, dtype=np.uint8).reshape(-1, 4)
    return PixelGrid(image.width, image.height, pack_channels(rgba))
