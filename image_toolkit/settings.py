"""
Settings persistence: load and validate tool configuration.

Runtime settings are stored in a JSON file in the user's config directory
(provided by ``config.config_dir()``).  On first launch (or if the file
is missing/corrupt), the file is created from DEFAULT_SETTINGS.  This
module is Qt-free.

The on-disk format uses a versioned envelope::

    {"version": 1, "settings": {"output_width": 300, ...}}

Keys missing from an otherwise valid file fall back to their defaults.
"""

import json
import logging
from copy import deepcopy
import math
from pathlib import Path

from image_toolkit.config import (
    DEFAULT_SETTINGS, RESIZE_PERCENT_MAX, RESIZE_PERCENT_MIN,
    TOLERANCE_MAX, TOLERANCE_MIN, config_dir,
)
from image_toolkit.errors import InvalidConfiguration
from image_toolkit.models import CropShape, ScalePolicy

logger = logging.getLogger(__name__)

_SETTINGS_FILENAME = "settings.json"
_FORMAT_VERSION = 1

_POSITIVE_INT_KEYS = ("output_width", "output_height")
_PRESET_REQUIRED_KEYS = {"name", "ratio_w", "ratio_h"}


# =============================================================================
# Aspect-ratio helpers
# =============================================================================
def normalize_ratio(w: int, h: int) -> tuple[int, int]:
    """Reduce ratio to simplest form via GCD. (1920, 1080) → (16, 9)"""
    g = math.gcd(w, h)
    return w // g, h // g


def aspect_key(w: int, h: int) -> str:
    """Normalized string key for a ratio. (8, 6) → '4:3'"""
    nw, nh = normalize_ratio(w, h)
    return f"{nw}:{nh}"


def output_size_for_aspect(width: int, ratio_w: int, ratio_h: int) -> tuple[int, int]:
    """Keep *width* and derive the height from the ratio."""
    if width <= 0 or ratio_w <= 0 or ratio_h <= 0:
        raise InvalidConfiguration(f"Invalid aspect request: {width} @ {ratio_w}:{ratio_h}")
    return width, max(1, math.floor(width * ratio_h / ratio_w + 0.5))


def find_preset(settings: dict, name: str) -> dict:
    for preset in settings.get("aspect_presets", []):
        if preset["name"] == name:
            return preset
    raise InvalidConfiguration(f"Unknown aspect preset: {name!r}")


# =============================================================================
# Config directory helpers
# =============================================================================
def _settings_path() -> Path:
    """Return the full path to settings.json."""
    return config_dir() / _SETTINGS_FILENAME


# =============================================================================
# Validation
# =============================================================================
def _is_number(val) -> bool:
    return isinstance(val, (int, float)) and not isinstance(val, bool)


def validate_settings(data: object) -> list[str]:
    """
    Validate a settings dict.  Absent keys are allowed (defaults apply).

    Returns a list of error strings (empty means valid).
    """
    errors: list[str] = []

    if not isinstance(data, dict):
        errors.append("Settings data must be a dict")
        return errors

    for key in _POSITIVE_INT_KEYS:
        if key in data:
            val = data[key]
            if not isinstance(val, int) or isinstance(val, bool) or val <= 0:
                errors.append(f"{key} must be a positive integer, got {val!r}")

    if "shape" in data and data["shape"] not in {s.value for s in CropShape}:
        errors.append(f"shape must be one of {[s.value for s in CropShape]}, got {data['shape']!r}")

    if "scale_policy" in data and data["scale_policy"] not in {p.value for p in ScalePolicy}:
        errors.append(
            f"scale_policy must be one of {[p.value for p in ScalePolicy]}, got {data['scale_policy']!r}"
        )

    for key in ("zoom_step", "wheel_step"):
        if key in data:
            val = data[key]
            if not _is_number(val) or not 0 < val < 1:
                errors.append(f"{key} must be a number between 0 and 1, got {val!r}")

    if "max_zoom" in data:
        val = data["max_zoom"]
        if val is not None and (not _is_number(val) or val < 1):
            errors.append(f"max_zoom must be null or a number >= 1, got {val!r}")

    if "tolerance" in data:
        val = data["tolerance"]
        if not _is_number(val) or not TOLERANCE_MIN <= val <= TOLERANCE_MAX:
            errors.append(f"tolerance must be between {TOLERANCE_MIN} and {TOLERANCE_MAX}, got {val!r}")

    if "resize_percent" in data:
        val = data["resize_percent"]
        if not _is_number(val) or not RESIZE_PERCENT_MIN <= val <= RESIZE_PERCENT_MAX:
            errors.append(
                f"resize_percent must be between {RESIZE_PERCENT_MIN} and {RESIZE_PERCENT_MAX}, got {val!r}"
            )

    if "aspect_presets" in data:
        errors.extend(_validate_presets(data["aspect_presets"]))

    return errors


def _validate_presets(presets: object) -> list[str]:
    errors: list[str] = []
    if not isinstance(presets, list) or not presets:
        return ["aspect_presets must be a non-empty list"]

    keys_seen: dict[str, str] = {}  # aspect_key -> preset name
    for i, preset in enumerate(presets):
        prefix = f"Preset #{i + 1}"
        if not isinstance(preset, dict):
            errors.append(f"{prefix}: must be a dict")
            continue

        missing = _PRESET_REQUIRED_KEYS - preset.keys()
        if missing:
            errors.append(f"{prefix}: missing keys: {', '.join(sorted(missing))}")
            continue

        name = preset["name"]
        if not isinstance(name, str) or not name.strip():
            errors.append(f"{prefix}: name must be a non-empty string")

        ratio_w, ratio_h = preset["ratio_w"], preset["ratio_h"]
        valid = True
        for key, val in (("ratio_w", ratio_w), ("ratio_h", ratio_h)):
            if not isinstance(val, int) or isinstance(val, bool) or val <= 0:
                errors.append(f"{prefix}: {key} must be a positive integer, got {val!r}")
                valid = False

        # Duplicate normalized ratios would show two buttons doing the same thing
        if valid:
            akey = aspect_key(ratio_w, ratio_h)
            if akey in keys_seen:
                errors.append(f"{prefix} ('{name}'): aspect ratio {akey} duplicates '{keys_seen[akey]}'")
            else:
                keys_seen[akey] = name

    return errors


# =============================================================================
# Load / Save
# =============================================================================
def load_settings() -> dict:
    """
    Load settings from settings.json merged over DEFAULT_SETTINGS.

    If the file is missing, corrupt, or fails validation, writes the
    defaults and returns them.
    """
    path = _settings_path()

    if not path.exists():
        logger.info("settings.json not found, creating with defaults at %s", path)
        _write_defaults(path)
        return deepcopy(DEFAULT_SETTINGS)

    try:
        text = path.read_text(encoding="utf-8")
        raw = json.loads(text)
    except (json.JSONDecodeError, OSError) as exc:
        logger.warning("Failed to read settings.json (%s), restoring defaults", exc)
        _write_defaults(path)
        return deepcopy(DEFAULT_SETTINGS)

    if not isinstance(raw, dict) or raw.get("version") != _FORMAT_VERSION or "settings" not in raw:
        logger.warning("settings.json missing version envelope, restoring defaults")
        _write_defaults(path)
        return deepcopy(DEFAULT_SETTINGS)

    data = raw["settings"]
    errors = validate_settings(data)
    if errors:
        logger.warning(
            "settings.json validation failed:\n  %s\nRestoring defaults.",
            "\n  ".join(errors),
        )
        _write_defaults(path)
        return deepcopy(DEFAULT_SETTINGS)

    merged = deepcopy(DEFAULT_SETTINGS)
    merged.update(data)
    logger.info("Loaded settings from %s", path)
    return merged


def _write_defaults(path: Path) -> None:
    """Write DEFAULT_SETTINGS to the given path in versioned envelope."""
    try:
        envelope = {"version": _FORMAT_VERSION, "settings": deepcopy(DEFAULT_SETTINGS)}
        path.write_text(
            json.dumps(envelope, indent=2, ensure_ascii=False),
            encoding="utf-8",
        )
    except OSError as exc:
        logger.error("Could not write default settings to %s: %s", path, exc)
