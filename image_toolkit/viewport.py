"""
Viewport initialization, bounds enforcement and crop-frame layout.

``enforce`` is the invariant keeper for the whole crop tool: after every
mutation the image rectangle ``(tx, ty, w*scale, h*scale)`` must contain the
frame on each axis where the image is at least as large as the frame.  On an
axis where the image is smaller (only reachable under the contain policy) the
image is kept inside the frame instead.
"""

import logging
import math

from image_toolkit.config import FRAME_MARGIN
from image_toolkit.errors import InvalidConfiguration
from image_toolkit.models import (
    CropFrame, CropShape, ImageSize, ScalePolicy, ViewportState, min_scale,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Bounds Enforcer
# =============================================================================
def _clamp_axis(translate: float, frame_edge: float, frame_dim: float, img_dim: float) -> float:
    if img_dim >= frame_dim:
        # Leading edge between "trailing edge pinned to frame end" and frame start
        low = frame_edge + frame_dim - img_dim
        high = frame_edge
    else:
        # Image smaller than the frame: keep it inside the frame
        low = frame_edge
        high = frame_edge + frame_dim - img_dim
    return max(low, min(translate, high))


def enforce(state: ViewportState, image: ImageSize, frame: CropFrame) -> ViewportState:
    """Return *state* with its translation clamped against *frame*.  Pure."""
    img_w = image.width * state.scale
    img_h = image.height * state.scale
    tx = _clamp_axis(state.translate_x, frame.x, frame.width, img_w)
    ty = _clamp_axis(state.translate_y, frame.y, frame.height, img_h)
    if tx == state.translate_x and ty == state.translate_y:
        return state
    return ViewportState(state.scale, tx, ty)


# =============================================================================
# Initialization
# =============================================================================
def initialize(image: ImageSize, frame: CropFrame,
               policy: ScalePolicy = ScalePolicy.COVER) -> ViewportState:
    """Center the image on the frame at the policy's minimum scale.

    Raises InvalidImage for a zero-dimension image; no state is produced.
    """
    image.validate()
    scale = min_scale(image, frame, policy)
    state = ViewportState(
        scale=scale,
        translate_x=frame.x + (frame.width - image.width * scale) / 2,
        translate_y=frame.y + (frame.height - image.height * scale) / 2,
    )
    logger.debug("Viewport initialized: image=%s frame=%s policy=%s scale=%.6f",
                 image, frame, policy.value, scale)
    return enforce(state, image, frame)


# =============================================================================
# Frame layout
# =============================================================================
def parse_dimension(value) -> int:
    """Convert user input (text or number) to a positive pixel count."""
    if isinstance(value, bool):
        raise InvalidConfiguration(f"Invalid size: {value!r}")
    if isinstance(value, str):
        value = value.strip()
        try:
            number = int(value, 10)
        except ValueError:
            raise InvalidConfiguration(f"Invalid size: {value!r}") from None
    elif isinstance(value, (int, float)):
        if not math.isfinite(value) or value != int(value):
            raise InvalidConfiguration(f"Invalid size: {value!r}")
        number = int(value)
    else:
        raise InvalidConfiguration(f"Invalid size: {value!r}")
    if number <= 0:
        raise InvalidConfiguration(f"Size must be positive, got {number}")
    return number


def output_size(width, height, shape: CropShape) -> tuple[int, int]:
    """Validate the requested output size; circles are squared to the shorter side."""
    w = parse_dimension(width)
    h = parse_dimension(height)
    if shape is CropShape.CIRCLE:
        side = min(w, h)
        return side, side
    return w, h


def layout_frame(container_w: float, container_h: float, out_w, out_h,
                 shape: CropShape = CropShape.SQUARE,
                 margin: float = FRAME_MARGIN) -> CropFrame:
    """Place a crop frame with the output's aspect ratio, centered in the container.

    The frame is scaled down (never up) to fit the container minus *margin*
    on each side.
    """
    if container_w <= 0 or container_h <= 0:
        raise InvalidConfiguration(f"Viewport container has no area ({container_w}×{container_h})")
    w, h = output_size(out_w, out_h, shape)
    avail_w = container_w * (1 - 2 * margin)
    avail_h = container_h * (1 - 2 * margin)
    fit = min(1.0, avail_w / w, avail_h / h)
    frame_w = w * fit
    frame_h = h * fit
    return CropFrame(
        x=(container_w - frame_w) / 2,
        y=(container_h - frame_h) / 2,
        width=frame_w,
        height=frame_h,
        shape=shape,
    )
