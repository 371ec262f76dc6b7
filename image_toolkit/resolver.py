"""
Crop resolver: viewport state → source sample rectangle → output raster.

The resolver trusts the bounds invariant and does not re-clamp.  If the
rectangle still leaves the image (an upstream violation), rendering degrades
to a partially transparent raster rather than failing.
"""

import logging

from PIL import Image

from image_toolkit.config import GEOMETRY_EPSILON
from image_toolkit.errors import InvalidConfiguration
from image_toolkit.mask import apply_mask
from image_toolkit.models import CropFrame, CropShape, ImageSize, SourceRect, ViewportState

logger = logging.getLogger(__name__)


def resolve_crop_rect(state: ViewportState, frame: CropFrame) -> SourceRect:
    """Map the frame into source-image pixels for the given viewport."""
    return SourceRect(
        sx=(frame.x - state.translate_x) / state.scale,
        sy=(frame.y - state.translate_y) / state.scale,
        s_width=frame.width / state.scale,
        s_height=frame.height / state.scale,
    )


def is_within(rect: SourceRect, image: ImageSize, eps: float = GEOMETRY_EPSILON) -> bool:
    left, upper, right, lower = rect.as_box()
    return (left >= -eps and upper >= -eps
            and right <= image.width + eps and lower <= image.height + eps)


def render_crop(source: Image.Image, rect: SourceRect, out_w: int, out_h: int,
                shape: CropShape = CropShape.SQUARE) -> Image.Image:
    """Sample *rect* from the full-resolution *source* into an ``out_w``×``out_h`` RGBA raster."""
    if out_w <= 0 or out_h <= 0:
        raise InvalidConfiguration(f"Output size must be positive, got {out_w}×{out_h}")

    img = source.convert("RGBA") if source.mode != "RGBA" else source
    size = ImageSize(img.width, img.height)

    if is_within(rect, size):
        left, upper, right, lower = rect.as_box()
        # Snap float noise back onto the image edge
        box = (max(0.0, left), max(0.0, upper), min(float(img.width), right), min(float(img.height), lower))
        raster = img.resize((out_w, out_h), Image.Resampling.LANCZOS, box=box)
    else:
        logger.warning("Crop rectangle %s exceeds image %s×%s; edges will be transparent",
                       rect, img.width, img.height)
        raster = img.transform(
            (out_w, out_h), Image.Transform.EXTENT, rect.as_box(),
            Image.Resampling.BICUBIC, fillcolor=(0, 0, 0, 0),
        )

    return apply_mask(raster, shape)
