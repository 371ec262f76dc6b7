"""
Stylized QR-code generation (Qt-free).

The module matrix comes from ``qrcode`` at error-correction level H so a
logo can cover part of the code.  Rendering is done here with Pillow: solid
or gradient fills, square or round dots, rounded finder patterns, and an
optional embedded logo (see ``logo.embed_logo``).
"""

import logging
from dataclasses import dataclass

import numpy as np
import qrcode
from PIL import Image, ImageDraw
from qrcode.constants import ERROR_CORRECT_H
from qrcode.exceptions import DataOverflowError

from image_toolkit.config import (
    QR_DEFAULT_SIZE, QR_DOT_STYLES, QR_FILL_TYPES, QR_GRADIENT_DIRECTIONS, QR_LOGO_POSITIONS,
)
from image_toolkit.errors import InvalidConfiguration
from image_toolkit.logo import embed_logo
from image_toolkit.transparency import hex_to_rgb

logger = logging.getLogger(__name__)

# Styled codes are drawn larger and downsampled for smooth edges
_SUPERSAMPLE = 4
_OUTER_CORNER_FRACTION = 0.05
_DOT_FILL = 0.8


@dataclass
class QrOptions:
    text: str = ""
    size: int = QR_DEFAULT_SIZE
    color_dark: str = "#000000"
    color_light: str = "#ffffff"
    dot_style: str = "square"
    fill: str = "solid"
    fg_gradient_start: str = "#000000"
    fg_gradient_end: str = "#000000"
    bg_gradient_start: str = "#ffffff"
    bg_gradient_end: str = "#ffffff"
    gradient_direction: str = "vertical"
    logo_size_ratio: float = 0.2
    logo_position: str = "center"
    circular_logo: bool = False

    def validate(self) -> "QrOptions":
        if not self.text or not self.text.strip():
            raise InvalidConfiguration("Enter text or a URL to encode")
        if not isinstance(self.size, int) or self.size <= 0:
            raise InvalidConfiguration(f"QR size must be a positive integer, got {self.size!r}")
        if self.dot_style not in QR_DOT_STYLES:
            raise InvalidConfiguration(f"Unknown dot style: {self.dot_style!r}")
        if self.fill not in QR_FILL_TYPES:
            raise InvalidConfiguration(f"Unknown fill type: {self.fill!r}")
        if self.gradient_direction not in QR_GRADIENT_DIRECTIONS:
            raise InvalidConfiguration(f"Unknown gradient direction: {self.gradient_direction!r}")
        if self.logo_position not in QR_LOGO_POSITIONS:
            raise InvalidConfiguration(f"Unknown logo position: {self.logo_position!r}")
        if not 0 < self.logo_size_ratio <= 0.5:
            raise InvalidConfiguration(f"Logo size must be between 0 and 50%, got {self.logo_size_ratio!r}")
        for color in (self.color_dark, self.color_light, self.fg_gradient_start,
                      self.fg_gradient_end, self.bg_gradient_start, self.bg_gradient_end):
            hex_to_rgb(color)
        return self

    @property
    def is_plain(self) -> bool:
        return self.dot_style == "square" and self.fill == "solid"


# =============================================================================
# Matrix
# =============================================================================
def build_matrix(text: str) -> list[list[bool]]:
    """Module matrix (True = dark) without a quiet zone."""
    if not text or not text.strip():
        raise InvalidConfiguration("Enter text or a URL to encode")
    qr = qrcode.QRCode(error_correction=ERROR_CORRECT_H, border=0)
    qr.add_data(text.strip())
    try:
        qr.make(fit=True)
    except (DataOverflowError, ValueError):
        # Newer qrcode releases report an overflow as an invalid version number
        raise InvalidConfiguration("Text is too long to fit in a QR code") from None
    return [list(row) for row in qr.get_matrix()]


def is_finder(row: int, col: int, count: int) -> bool:
    return ((row <= 6 and col <= 6)
            or (row <= 6 and col >= count - 7)
            or (row >= count - 7 and col <= 6))


# =============================================================================
# Fills
# =============================================================================
def solid_fill(size: int, color: str) -> Image.Image:
    return Image.new("RGBA", (size, size), hex_to_rgb(color) + (255,))


def gradient_fill(size: int, start: str, end: str, direction: str) -> Image.Image:
    """Linear (vertical/horizontal) or radial two-stop gradient."""
    c0 = np.array(hex_to_rgb(start), dtype=np.float64)
    c1 = np.array(hex_to_rgb(end), dtype=np.float64)
    ramp = np.linspace(0.0, 1.0, size)
    if direction == "horizontal":
        t = np.broadcast_to(ramp[np.newaxis, :], (size, size))
    elif direction == "radial":
        coords = np.arange(size) + 0.5 - size / 2
        dist = np.sqrt(coords[np.newaxis, :] ** 2 + coords[:, np.newaxis] ** 2)
        t = np.clip(dist / (size / 2), 0.0, 1.0)
    else:
        t = np.broadcast_to(ramp[:, np.newaxis], (size, size))
    rgb = c0 + (c1 - c0) * t[..., np.newaxis]
    return Image.fromarray(np.rint(rgb).astype(np.uint8), "RGB").convert("RGBA")


def _fills(options: QrOptions, size: int) -> tuple[Image.Image, Image.Image]:
    if options.fill == "gradient":
        fg = gradient_fill(size, options.fg_gradient_start, options.fg_gradient_end, options.gradient_direction)
        bg = gradient_fill(size, options.bg_gradient_start, options.bg_gradient_end, options.gradient_direction)
    else:
        fg = solid_fill(size, options.color_dark)
        bg = solid_fill(size, options.color_light)
    return fg, bg


# =============================================================================
# Rendering
# =============================================================================
def _module_mask(matrix: list[list[bool]], size: int, dot_style: str) -> Image.Image:
    count = len(matrix)
    m = size / count
    mask = Image.new("L", (size, size), 0)
    draw = ImageDraw.Draw(mask)
    round_dots = dot_style == "round"

    for row in range(count):
        for col in range(count):
            if not matrix[row][col]:
                continue
            finder = is_finder(row, col, count)
            if round_dots and finder:
                continue  # drawn below as rounded squares
            if round_dots:
                cx, cy = (col + 0.5) * m, (row + 0.5) * m
                r = m / 2 * _DOT_FILL
                draw.ellipse((cx - r, cy - r, cx + r, cy + r), fill=255)
            else:
                draw.rectangle((round(col * m), round(row * m),
                                round((col + 1) * m) - 1, round((row + 1) * m) - 1), fill=255)

    if round_dots:
        for col, row in ((0, 0), (count - 7, 0), (0, count - 7)):
            x, y = col * m, row * m
            draw.rounded_rectangle((x, y, x + 7 * m, y + 7 * m), radius=2 * m, fill=255)
            draw.rounded_rectangle((x + m, y + m, x + 6 * m, y + 6 * m), radius=1.5 * m, fill=0)
            draw.rounded_rectangle((x + 2 * m, y + 2 * m, x + 5 * m, y + 5 * m), radius=m, fill=255)
    return mask


def render_qr(options: QrOptions, logo: Image.Image | None = None) -> Image.Image:
    """Render the QR code described by *options* as an RGBA image."""
    options.validate()
    matrix = build_matrix(options.text)
    count = len(matrix)
    factor = 1 if options.is_plain else _SUPERSAMPLE
    size = options.size * factor

    fg, bg = _fills(options, size)
    img = Image.composite(fg, bg, _module_mask(matrix, size, options.dot_style))

    if not options.is_plain:
        outer = Image.new("L", (size, size), 0)
        ImageDraw.Draw(outer).rounded_rectangle(
            (0, 0, size - 1, size - 1), radius=size * _OUTER_CORNER_FRACTION, fill=255,
        )
        img.putalpha(outer)

    if logo is not None:
        img = embed_logo(img, logo, bg, count, options.logo_size_ratio,
                         options.logo_position, options.circular_logo)

    if factor != 1:
        img = img.resize((options.size, options.size), Image.Resampling.LANCZOS)
    logger.debug("Rendered QR: %d modules, %dpx, style=%s fill=%s logo=%s",
                 count, options.size, options.dot_style, options.fill, logo is not None)
    return img
