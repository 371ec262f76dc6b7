"""
Transform controller: turns drag, wheel, button and pinch gestures into new
viewport states.

The gesture functions are pure: each takes the current ``GestureState`` and
``ViewportState`` and returns the replacements, so no drag or pinch fields
live in hidden globals.  ``TransformController`` owns one of each for the Qt
widget and the crop session.

Only one gesture is active at a time.  A second touch point turns a drag
into a pinch; losing a pinch point, releasing, or any malformed input
abandons the gesture and leaves the last enforced viewport untouched.
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum

from image_toolkit.models import (
    CropFrame, ImageSize, Point, ScalePolicy, ViewportState, max_scale, min_scale,
)
from image_toolkit.viewport import enforce, initialize

logger = logging.getLogger(__name__)


class GestureMode(Enum):
    IDLE = 0
    DRAG = 1
    PINCH = 2


@dataclass(frozen=True)
class GestureState:
    """Transient per-gesture values.  ``distance`` is 0 until a pinch has a baseline."""
    mode: GestureMode = GestureMode.IDLE
    last: Point = None
    distance: float = 0.0


IDLE = GestureState()


@dataclass(frozen=True)
class ViewportGeometry:
    """Everything the controller needs besides the mutable viewport."""
    image: ImageSize
    frame: CropFrame
    floor: float
    ceiling: float = float("inf")

    @classmethod
    def build(cls, image: ImageSize, frame: CropFrame,
              policy: ScalePolicy = ScalePolicy.COVER,
              max_zoom: float | None = None) -> "ViewportGeometry":
        floor = min_scale(image, frame, policy)
        return cls(image, frame, floor, max_scale(floor, max_zoom))


# =============================================================================
# Pure operations
# =============================================================================
def pan(state: ViewportState, dx: float, dy: float, geometry: ViewportGeometry) -> ViewportState:
    """Translate by (dx, dy) then clamp."""
    if not (math.isfinite(dx) and math.isfinite(dy)):
        return state
    moved = ViewportState(state.scale, state.translate_x + dx, state.translate_y + dy)
    return enforce(moved, geometry.image, geometry.frame)


def zoom_by(state: ViewportState, factor: float, origin: Point,
            geometry: ViewportGeometry) -> ViewportState:
    """Scale by *factor* keeping the source point under *origin* fixed."""
    if not math.isfinite(factor) or factor <= 0:
        return state
    current = state.scale
    new_scale = min(max(current * factor, geometry.floor), geometry.ceiling)
    if new_scale == current:
        return state
    # Ratio must come from the pre-mutation scale
    ratio = new_scale / current
    zoomed = ViewportState(
        scale=new_scale,
        translate_x=origin.x - (origin.x - state.translate_x) * ratio,
        translate_y=origin.y - (origin.y - state.translate_y) * ratio,
    )
    logger.debug("Zoom %.4f -> %.4f around (%.1f, %.1f)", current, new_scale, origin.x, origin.y)
    return enforce(zoomed, geometry.image, geometry.frame)


def pinch_zoom(state: ViewportState, distance_ratio: float, center: Point,
               geometry: ViewportGeometry) -> ViewportState:
    return zoom_by(state, distance_ratio, center, geometry)


# =============================================================================
# Gesture transitions
# =============================================================================
def _distance(a: Point, b: Point) -> float:
    return math.hypot(b.x - a.x, b.y - a.y)


def _midpoint(a: Point, b: Point) -> Point:
    return Point((a.x + b.x) / 2, (a.y + b.y) / 2)


def begin_drag(gesture: GestureState, point: Point) -> GestureState:
    # A pinch in progress wins over a new single pointer
    if gesture.mode is GestureMode.PINCH:
        return gesture
    return GestureState(GestureMode.DRAG, point)


def drag_move(gesture: GestureState, point: Point, state: ViewportState,
              geometry: ViewportGeometry) -> tuple[GestureState, ViewportState]:
    if gesture.mode is not GestureMode.DRAG or gesture.last is None:
        return gesture, state
    new_state = pan(state, point.x - gesture.last.x, point.y - gesture.last.y, geometry)
    return GestureState(GestureMode.DRAG, point), new_state


def begin_pinch(points: list[Point]) -> GestureState:
    """Start a pinch from two touch points, cancelling any drag."""
    if len(points) < 2:
        return IDLE
    a, b = points[0], points[1]
    return GestureState(GestureMode.PINCH, _midpoint(a, b), _distance(a, b))


def pinch_move(gesture: GestureState, points: list[Point], state: ViewportState,
               geometry: ViewportGeometry) -> tuple[GestureState, ViewportState]:
    """Apply one pinch frame: factor = current distance / previous distance."""
    if gesture.mode is not GestureMode.PINCH:
        return gesture, state
    if len(points) < 2:
        # Dropped to one point: abandon the pinch
        return IDLE, state
    a, b = points[0], points[1]
    current = _distance(a, b)
    center = _midpoint(a, b)
    if gesture.distance <= 0 or current <= 0:
        return GestureState(GestureMode.PINCH, center, current), state
    new_state = pinch_zoom(state, current / gesture.distance, center, geometry)
    return GestureState(GestureMode.PINCH, center, current), new_state


def end_gesture(gesture: GestureState) -> GestureState:
    return IDLE


# =============================================================================
# Stateful owner
# =============================================================================
class TransformController:
    """Owns the viewport and gesture state for one image/frame pair."""

    def __init__(self, image: ImageSize, frame: CropFrame,
                 policy: ScalePolicy = ScalePolicy.COVER,
                 max_zoom: float | None = None,
                 zoom_step: float = 0.10, wheel_step: float = 0.05):
        self.geometry = ViewportGeometry.build(image, frame, policy, max_zoom)
        self.policy = policy
        self.zoom_step = zoom_step
        self.wheel_step = wheel_step
        self.state = initialize(image, frame, policy)
        self.gesture = IDLE

    @property
    def frame(self) -> CropFrame:
        return self.geometry.frame

    @property
    def image(self) -> ImageSize:
        return self.geometry.image

    def is_active(self) -> bool:
        return self.gesture.mode is not GestureMode.IDLE

    # --- Direct operations ---

    def pan(self, dx: float, dy: float) -> ViewportState:
        self.state = pan(self.state, dx, dy, self.geometry)
        return self.state

    def zoom_by(self, factor: float, origin: Point = None) -> ViewportState:
        if origin is None:
            origin = self.frame.center
        self.state = zoom_by(self.state, factor, origin, self.geometry)
        return self.state

    def zoom_in(self, origin: Point = None) -> ViewportState:
        return self.zoom_by(1 + self.zoom_step, origin)

    def zoom_out(self, origin: Point = None) -> ViewportState:
        return self.zoom_by(1 - self.zoom_step, origin)

    def wheel(self, notches: float, origin: Point) -> ViewportState:
        """Positive notches zoom in, negative zoom out, by ``wheel_step`` each."""
        if notches == 0:
            return self.state
        step = 1 + self.wheel_step if notches > 0 else 1 - self.wheel_step
        return self.zoom_by(step ** abs(notches), origin)

    # --- Pointer gestures ---

    def press(self, point: Point):
        self.gesture = begin_drag(self.gesture, point)

    def move(self, point: Point) -> ViewportState:
        self.gesture, self.state = drag_move(self.gesture, point, self.state, self.geometry)
        return self.state

    def release(self):
        self.gesture = end_gesture(self.gesture)

    # --- Touch gestures ---

    def touch_begin(self, points: list[Point]):
        if len(points) >= 2:
            self.gesture = begin_pinch(points)
        elif points:
            self.gesture = begin_drag(self.gesture, points[0])

    def touch_update(self, points: list[Point]) -> ViewportState:
        if self.gesture.mode is GestureMode.PINCH:
            self.gesture, self.state = pinch_move(self.gesture, points, self.state, self.geometry)
        elif len(points) >= 2:
            # Second finger arrived mid-drag
            self.gesture = begin_pinch(points)
        elif self.gesture.mode is GestureMode.DRAG and points:
            self.gesture, self.state = drag_move(self.gesture, points[0], self.state, self.geometry)
        return self.state

    def touch_end(self):
        self.gesture = end_gesture(self.gesture)
