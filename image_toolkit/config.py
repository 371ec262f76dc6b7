"""
Application constants and configuration.

DEFAULT_SETTINGS provides the built-in fallback settings. Runtime settings
are loaded from settings.json via the settings module. All other constants
control the crop viewport, the transparency and resize tools, and the QR
generator.

The ``config_dir()`` helper returns the platform-appropriate config
directory and is shared by all persistence modules.
"""

import os
import sys
from pathlib import Path

# =============================================================================
# APP IDENTITY & CONFIG DIRECTORY
# =============================================================================
APP_NAME = "image-toolkit"


def config_dir() -> Path:
    """Return the platform-appropriate config directory, creating it if needed."""
    if sys.platform == "win32":
        base = Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming"))
    elif sys.platform == "darwin":
        base = Path.home() / "Library" / "Application Support"
    else:
        base = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    directory = base / APP_NAME
    directory.mkdir(parents=True, exist_ok=True)
    return directory


# =============================================================================
# DEFAULT SETTINGS: built-in fallback when settings.json is missing or corrupt
# =============================================================================
DEFAULT_SETTINGS = {
    "output_width": 300,
    "output_height": 300,
    "shape": "square",
    "scale_policy": "cover",
    "zoom_step": 0.10,
    "wheel_step": 0.05,
    "max_zoom": 10.0,
    "aspect_presets": [
        {"name": "1:1", "ratio_w": 1, "ratio_h": 1},
        {"name": "4:3", "ratio_w": 4, "ratio_h": 3},
        {"name": "16:9", "ratio_w": 16, "ratio_h": 9},
    ],
    "tolerance": 30,
    "resize_percent": 100,
}

# Crop frame occupies the container minus this fraction on each side
FRAME_MARGIN = 0.1

# Positional slack (pixels) tolerated before a crop counts as out of bounds
GEOMETRY_EPSILON = 1e-6

# Transparency tool: max Euclidean RGB distance is sqrt(3 * 255**2) ~ 441.7
TOLERANCE_MIN = 0
TOLERANCE_MAX = 441

# Resize percent range exposed by the UI
RESIZE_PERCENT_MIN = 1
RESIZE_PERCENT_MAX = 200

# PNG compression level (0-9, 9 = maximum compression)
PNG_COMPRESS_LEVEL = 9

# Default download names
CROP_DOWNLOAD_PREFIX = "cropped-image"
TRANSPARENT_DOWNLOAD_NAME = "transparent_resized_image.png"
ZIP_DOWNLOAD_NAME = "resized_images.zip"
QR_DOWNLOAD_NAME = "qr_with_logo.png"

# QR generator
QR_DEFAULT_SIZE = 256
QR_DEBOUNCE_MS = 250
QR_DOT_STYLES = ["square", "round"]
QR_FILL_TYPES = ["solid", "gradient"]
QR_GRADIENT_DIRECTIONS = ["vertical", "horizontal", "radial"]
QR_LOGO_POSITIONS = ["center", "top-left", "top-right", "bottom-left", "bottom-right"]
QR_GRADIENT_PRESETS = [
    {"name": "Ocean", "fg_start": "#0f2027", "fg_end": "#2c5364", "bg_start": "#ffffff", "bg_end": "#e0f7fa"},
    {"name": "Sunset", "fg_start": "#c31432", "fg_end": "#240b36", "bg_start": "#fffaf0", "bg_end": "#ffe4e1"},
    {"name": "Forest", "fg_start": "#134e5e", "fg_end": "#71b280", "bg_start": "#ffffff", "bg_end": "#f1f8e9"},
]

# Supported image extensions
IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".bmp", ".gif", ".tiff", ".tif", ".webp", ".psd"}

# Keyboard pan amounts (screen pixels)
NUDGE_SMALL = 1
NUDGE_LARGE = 10

# One wheel notch in Qt angle-delta units
WHEEL_NOTCH = 120
