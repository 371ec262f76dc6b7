"""
Logo sizing and compositing for QR codes (Qt-free).

Places a logo on a rendered QR code: sizes it relative to the code, keeps
corner placements clear of the finder patterns, clears a background patch
under it, and clips it to a circle or rounded rectangle.
"""

from PIL import Image, ImageChops, ImageDraw

from image_toolkit.config import QR_LOGO_POSITIONS
from image_toolkit.errors import InvalidConfiguration

# Corner placements stay this many modules away from the edge (7 finder + 1 separator)
SAFE_ZONE_MODULES = 8
# Cleared patch is this much larger than the logo
CLEAR_FACTOR = 1.25
# Rounded-rect radius as a fraction of the shorter side
CORNER_FRACTION = 0.25


def logo_container_size(logo_w: int, logo_h: int, max_size: float, circular: bool) -> tuple[float, float]:
    """Box the logo occupies: square for circles, aspect-fit otherwise."""
    if circular:
        return max_size, max_size
    aspect = logo_w / logo_h
    if aspect > 1:
        return max_size, max_size / aspect
    return max_size * aspect, max_size


def logo_position(position: str, canvas: float, width: float, height: float,
                  safe_zone: float) -> tuple[float, float]:
    """Top-left corner of the logo box for a named position."""
    if position == "top-left":
        return safe_zone, safe_zone
    if position == "top-right":
        return canvas - width - safe_zone, safe_zone
    if position == "bottom-left":
        return safe_zone, canvas - height - safe_zone
    if position == "bottom-right":
        return canvas - width - safe_zone, canvas - height - safe_zone
    if position == "center":
        return (canvas - width) / 2, (canvas - height) / 2
    raise InvalidConfiguration(f"Unknown logo position: {position!r} (expected one of {QR_LOGO_POSITIONS})")


def _rounded_mask(size: tuple[int, int], box: tuple[float, float, float, float], radius: float) -> Image.Image:
    mask = Image.new("L", size, 0)
    ImageDraw.Draw(mask).rounded_rectangle(box, radius=radius, fill=255)
    return mask


def _circle_mask(size: tuple[int, int], cx: float, cy: float, r: float) -> Image.Image:
    mask = Image.new("L", size, 0)
    ImageDraw.Draw(mask).ellipse((cx - r, cy - r, cx + r, cy + r), fill=255)
    return mask


def embed_logo(
    qr_img: Image.Image, logo: Image.Image, background: Image.Image,
    module_count: int, size_ratio: float, position: str = "center",
    circular: bool = False,
) -> Image.Image:
    """Composite *logo* onto *qr_img* and return the new RGBA image.

    *background* is the QR background fill (solid or gradient) at the same
    size as *qr_img*; it is used to clear the patch under the logo.
    """
    base = qr_img.convert("RGBA")
    logo = logo.convert("RGBA")
    canvas = base.width
    module = canvas / module_count

    cw, ch = logo_container_size(logo.width, logo.height, canvas * size_ratio, circular)
    x, y = logo_position(position, canvas, cw, ch, SAFE_ZONE_MODULES * module)
    cx, cy = x + cw / 2, y + ch / 2

    # 1. Clear the background under the logo
    if circular:
        patch = _circle_mask(base.size, cx, cy, cw / 2 * CLEAR_FACTOR)
    else:
        clear_w, clear_h = cw * CLEAR_FACTOR, ch * CLEAR_FACTOR
        clear_x, clear_y = x - (clear_w - cw) / 2, y - (clear_h - ch) / 2
        patch = _rounded_mask(base.size, (clear_x, clear_y, clear_x + clear_w, clear_y + clear_h),
                              min(clear_w, clear_h) * CORNER_FRACTION)
    base.paste(background.convert("RGBA"), (0, 0), patch)

    # 2. Draw the logo clipped to its shape
    layer = Image.new("RGBA", base.size, (0, 0, 0, 0))
    if circular:
        aspect = logo.width / logo.height
        if aspect > 1:
            dw, dh = cw, cw / aspect
        else:
            dw, dh = ch * aspect, ch
        resized = logo.resize((max(1, round(dw)), max(1, round(dh))), Image.Resampling.LANCZOS)
        layer.paste(resized, (round(x + (cw - dw) / 2), round(y + (ch - dh) / 2)))
        clip = _circle_mask(base.size, cx, cy, cw / 2)
    else:
        resized = logo.resize((max(1, round(cw)), max(1, round(ch))), Image.Resampling.LANCZOS)
        layer.paste(resized, (round(x), round(y)))
        clip = _rounded_mask(base.size, (x, y, x + cw, y + ch), min(cw, ch) * CORNER_FRACTION)

    layer.putalpha(ImageChops.multiply(layer.getchannel("A"), clip))
    return Image.alpha_composite(base, layer)
