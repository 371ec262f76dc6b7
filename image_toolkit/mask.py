"""
Shape masks for the output raster.

Circle masking zeroes alpha outside the inscribed circle instead of clipping
the draw, so partial transparency already in the raster (for example from
background removal) survives inside the circle.
"""

import numpy as np
from PIL import Image

from image_toolkit.models import CropShape


def circle_mask(width: int, height: int) -> np.ndarray:
    """Boolean array, True where the pixel center lies inside the inscribed circle."""
    radius = min(width, height) / 2
    ys = np.arange(height, dtype=np.float64) + 0.5 - height / 2
    xs = np.arange(width, dtype=np.float64) + 0.5 - width / 2
    return (xs[np.newaxis, :] ** 2 + ys[:, np.newaxis] ** 2) <= radius * radius


def apply_mask(raster: Image.Image, shape: CropShape) -> Image.Image:
    """Return an RGBA copy of *raster* clipped to *shape*."""
    result = raster.convert("RGBA") if raster.mode != "RGBA" else raster.copy()
    if shape is not CropShape.CIRCLE:
        return result

    pixels = np.array(result)
    inside = circle_mask(result.width, result.height)
    pixels[..., 3] = np.where(inside, pixels[..., 3], 0)
    return Image.fromarray(pixels, "RGBA")
