"""
Data models and scale-floor utilities.

SourceImage, CropFrame and ViewportState are the core data structures shared
by the crop viewport, the Qt widget and the tests.  All geometry is expressed
in one coordinate frame: pixels relative to the viewport container's
content-box origin, after the display transform is applied.  Source-space
rectangles (``SourceRect``) are in the decoded image's native pixels.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from PIL import Image

from image_toolkit.errors import InvalidConfiguration, InvalidImage


# =============================================================================
# Enumerations
# =============================================================================
class CropShape(str, Enum):
    SQUARE = "square"
    CIRCLE = "circle"

    @classmethod
    def parse(cls, value) -> "CropShape":
        try:
            return cls(value)
        except ValueError:
            raise InvalidConfiguration(f"Unknown crop shape: {value!r}") from None


class ScalePolicy(str, Enum):
    """Which zoom floor the viewport enforces.

    COVER keeps the frame fully covered by the image (no gaps); CONTAIN lets
    the whole image fit inside the frame, exposing background around it.
    """
    COVER = "cover"
    CONTAIN = "contain"

    @classmethod
    def parse(cls, value) -> "ScalePolicy":
        try:
            return cls(value)
        except ValueError:
            raise InvalidConfiguration(f"Unknown scale policy: {value!r}") from None


# =============================================================================
# Data classes
# =============================================================================
@dataclass(frozen=True)
class Point:
    x: float = 0.0
    y: float = 0.0


@dataclass(frozen=True)
class ImageSize:
    """Natural pixel dimensions of a decoded image."""
    width: int = 0
    height: int = 0

    def validate(self) -> "ImageSize":
        if self.width <= 0 or self.height <= 0:
            raise InvalidImage(f"Image has zero dimension ({self.width}×{self.height})")
        return self


@dataclass(frozen=True)
class SourceImage:
    """Decoded pixels plus where they came from.  Replaced, never mutated."""
    image: Image.Image
    path: Path = None

    def __post_init__(self):
        if self.image is None:
            raise InvalidImage("No image data")
        self.size.validate()

    @property
    def size(self) -> ImageSize:
        return ImageSize(self.image.width, self.image.height)

    @property
    def width(self) -> int:
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height


@dataclass(frozen=True)
class CropFrame:
    """Crop window in container coordinates.  Changes only on re-configuration."""
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0
    shape: CropShape = CropShape.SQUARE

    @property
    def center(self) -> Point:
        return Point(self.x + self.width / 2, self.y + self.height / 2)


@dataclass(frozen=True)
class ViewportState:
    """Display transform of the source image: screen = translate + source * scale."""
    scale: float = 1.0
    translate_x: float = 0.0
    translate_y: float = 0.0

    def to_source(self, point: Point) -> Point:
        """Map a container point into source space."""
        return Point((point.x - self.translate_x) / self.scale,
                     (point.y - self.translate_y) / self.scale)

    def to_screen(self, point: Point) -> Point:
        """Map a source-space point into container coordinates."""
        return Point(self.translate_x + point.x * self.scale,
                     self.translate_y + point.y * self.scale)


@dataclass(frozen=True)
class SourceRect:
    """Sample rectangle in source-image pixels."""
    sx: float = 0.0
    sy: float = 0.0
    s_width: float = 0.0
    s_height: float = 0.0

    def as_box(self) -> tuple[float, float, float, float]:
        """Return a Pillow ``(left, upper, right, lower)`` box."""
        return (self.sx, self.sy, self.sx + self.s_width, self.sy + self.s_height)


# =============================================================================
# Scale floor / ceiling
# =============================================================================
def min_scale(image: ImageSize, frame: CropFrame, policy: ScalePolicy = ScalePolicy.COVER) -> float:
    """Smallest allowed scale: cover uses max(scaleX, scaleY), contain uses min."""
    scale_x = frame.width / image.width
    scale_y = frame.height / image.height
    if policy is ScalePolicy.CONTAIN:
        return min(scale_x, scale_y)
    return max(scale_x, scale_y)


def max_scale(floor: float, max_zoom: float | None) -> float:
    """Zoom ceiling as a multiple of the floor; ``None`` means unbounded."""
    if max_zoom is None:
        return float("inf")
    return floor * max(1.0, max_zoom)
