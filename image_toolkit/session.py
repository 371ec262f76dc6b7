"""
Crop session: one source image, one frame configuration, one viewport.

The session is the Qt-free state machine behind the crop tab.  The widget
feeds it container resizes and gestures (through ``controller``); the main
window feeds it size/shape/aspect changes and asks it to crop.
"""

import logging
import time
from pathlib import Path

from PIL import Image

from image_toolkit.config import CROP_DOWNLOAD_PREFIX, DEFAULT_SETTINGS
from image_toolkit.errors import InvalidImage
from image_toolkit.image_io import load_source_image, save_png
from image_toolkit.models import CropFrame, CropShape, ScalePolicy, SourceImage, SourceRect
from image_toolkit.resolver import render_crop, resolve_crop_rect
from image_toolkit.settings import find_preset, output_size_for_aspect
from image_toolkit.transform import TransformController
from image_toolkit.viewport import layout_frame, output_size

logger = logging.getLogger(__name__)


class CropSession:
    def __init__(self, settings: dict | None = None):
        settings = settings or DEFAULT_SETTINGS
        self.settings = settings
        self.source: SourceImage | None = None
        self.container: tuple[float, float] | None = None
        self.shape = CropShape.parse(settings.get("shape", "square"))
        self.output = output_size(settings.get("output_width", 300),
                                  settings.get("output_height", 300), self.shape)
        self.policy = ScalePolicy.parse(settings.get("scale_policy", "cover"))
        self.aspect: str | None = None
        self.max_zoom = settings.get("max_zoom")
        self.zoom_step = settings.get("zoom_step", 0.10)
        self.wheel_step = settings.get("wheel_step", 0.05)
        self.controller: TransformController | None = None
        self.frame: CropFrame | None = None
        self.raster: Image.Image | None = None

    # --- Lifecycle ---

    def has_image(self) -> bool:
        return self.source is not None

    def is_ready(self) -> bool:
        """True once image and frame are both known and the viewport exists."""
        return self.controller is not None

    def load_image(self, source) -> SourceImage:
        """Replace the source image.  Raises InvalidImage and keeps the old one on failure."""
        if not isinstance(source, SourceImage):
            source = load_source_image(source)
        self.source = source
        self.raster = None
        logger.info("Loaded %s (%d×%d)", source.path or "image", source.width, source.height)
        self._rebuild()
        return source

    def set_container(self, width: float, height: float):
        if width <= 0 or height <= 0:
            return
        if self.container == (width, height):
            return
        self.container = (width, height)
        self._rebuild()

    def configure(self, width, height, shape: CropShape | str | None = None):
        """Apply a new output size/shape.  On error nothing changes."""
        new_shape = self.shape if shape is None else CropShape.parse(shape)
        new_output = output_size(width, height, new_shape)
        if self.container is not None:
            # Validate the layout before committing
            layout_frame(*self.container, *new_output, new_shape)
        self.shape = new_shape
        self.output = new_output
        self.aspect = None
        self._rebuild()

    def set_shape(self, shape: CropShape | str):
        self.configure(*self.output, shape)

    def apply_aspect(self, name: str):
        """Keep the current output width and derive the height from a named preset."""
        preset = find_preset(self.settings, name)
        width, height = output_size_for_aspect(self.output[0], preset["ratio_w"], preset["ratio_h"])
        self.configure(width, height, CropShape.SQUARE if preset["ratio_w"] != preset["ratio_h"] else None)
        self.aspect = name

    def set_policy(self, policy: ScalePolicy | str):
        self.policy = ScalePolicy.parse(policy)
        self._rebuild()

    def _rebuild(self):
        if self.container is None:
            self.frame = None
            self.controller = None
            return
        self.frame = layout_frame(*self.container, *self.output, self.shape)
        if self.source is None:
            self.controller = None
            return
        self.controller = TransformController(
            self.source.size, self.frame, self.policy, self.max_zoom,
            zoom_step=self.zoom_step, wheel_step=self.wheel_step,
        )

    # --- Crop / export ---

    def source_rect(self) -> SourceRect:
        if not self.is_ready():
            raise InvalidImage("No image loaded")
        return resolve_crop_rect(self.controller.state, self.frame)

    def crop(self) -> Image.Image:
        """Render the current frame at output resolution through the shape mask."""
        rect = self.source_rect()
        self.raster = render_crop(self.source.image, rect, *self.output, self.shape)
        logger.debug("Cropped %s -> %d×%d %s", rect, *self.output, self.shape.value)
        return self.raster

    def default_filename(self) -> str:
        return f"{CROP_DOWNLOAD_PREFIX}-{int(time.time() * 1000)}.png"

    def export_png(self, path: Path) -> Path:
        if self.raster is None:
            raise InvalidImage("Crop the image before downloading")
        return save_png(self.raster, Path(path))
