"""
Color-keyed background removal (Qt-free).

Pixels whose RGB distance to any of the key colours is within the tolerance
become fully transparent.  Processing always starts from the untouched
source so repeated runs with different settings do not accumulate.
"""

import math
import re

import numpy as np
from PIL import Image

from image_toolkit.errors import InvalidConfiguration

_HEX_RE = re.compile(r"^#?([0-9a-f]{2})([0-9a-f]{2})([0-9a-f]{2})$", re.IGNORECASE)


# =============================================================================
# Colour helpers
# =============================================================================
def hex_to_rgb(value: str) -> tuple[int, int, int]:
    """'#ff8800' or 'FF8800' → (255, 136, 0)."""
    match = _HEX_RE.match(value.strip()) if isinstance(value, str) else None
    if not match:
        raise InvalidConfiguration(f"Invalid colour: {value!r}")
    return tuple(int(part, 16) for part in match.groups())


def rgb_to_hex(r: int, g: int, b: int) -> str:
    return f"#{r:02x}{g:02x}{b:02x}"


def color_distance(a: tuple[int, int, int], b: tuple[int, int, int]) -> float:
    """Euclidean distance in RGB space."""
    return math.sqrt(sum((x - y) ** 2 for x, y in zip(a, b)))


# =============================================================================
# Processing
# =============================================================================
def remove_colors(image: Image.Image, colors, tolerance: float) -> Image.Image:
    """Return an RGBA copy with every pixel near one of *colors* made transparent.

    *colors* may mix hex strings and RGB tuples.
    """
    if tolerance < 0:
        raise InvalidConfiguration(f"Tolerance must not be negative, got {tolerance}")
    keys = [hex_to_rgb(c) if isinstance(c, str) else tuple(c) for c in colors]

    pixels = np.array(image.convert("RGBA"))
    rgb = pixels[..., :3].astype(np.int32)
    remove = np.zeros(rgb.shape[:2], dtype=bool)
    limit = tolerance * tolerance
    for key in keys:
        diff = rgb - np.array(key, dtype=np.int32)
        remove |= (diff * diff).sum(axis=-1) <= limit
    pixels[..., 3][remove] = 0
    return Image.fromarray(pixels, "RGBA")


def preview_scale(available_width: float, image_width: int) -> float:
    """Scale for the on-screen preview: shrink to fit, never enlarge."""
    if image_width <= 0:
        return 1.0
    return min(1.0, available_width / image_width)


def sample_color(image: Image.Image, display_size: tuple[int, int], point: tuple[float, float]) -> str:
    """Eyedropper: map a click on the scaled preview to the full-resolution pixel."""
    disp_w, disp_h = display_size
    if disp_w <= 0 or disp_h <= 0:
        raise InvalidConfiguration("Preview has no area")
    x = math.floor(point[0] * image.width / disp_w)
    y = math.floor(point[1] * image.height / disp_h)
    x = max(0, min(x, image.width - 1))
    y = max(0, min(y, image.height - 1))
    pixel = image.convert("RGBA").getpixel((x, y))
    return rgb_to_hex(*pixel[:3])


def scaled_size(width: int, height: int, percent: float) -> tuple[int, int]:
    if not isinstance(percent, (int, float)) or isinstance(percent, bool) \
            or not math.isfinite(percent) or percent <= 0:
        raise InvalidConfiguration(f"Scale must be a positive number, got {percent!r}")
    scale = percent / 100
    # Halves round up
    return max(1, math.floor(width * scale + 0.5)), max(1, math.floor(height * scale + 0.5))


def scale_image(image: Image.Image, percent: float) -> Image.Image:
    """Resize by *percent* (100 = unchanged)."""
    size = scaled_size(image.width, image.height, percent)
    if size == image.size:
        return image.copy()
    return image.resize(size, Image.Resampling.LANCZOS)
