import os

import pytest
from PIL import Image

from image_toolkit.config import DEFAULT_SETTINGS

# Qt widget tests must never need a display server
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")


@pytest.fixture
def settings():
    """A private copy of the built-in settings."""
    import copy
    return copy.deepcopy(DEFAULT_SETTINGS)


@pytest.fixture
def landscape_image():
    """800×600 opaque RGB image with a distinct colour per quadrant."""
    img = Image.new("RGB", (800, 600), (200, 0, 0))
    img.paste((0, 200, 0), (400, 0, 800, 300))
    img.paste((0, 0, 200), (0, 300, 400, 600))
    img.paste((200, 200, 0), (400, 300, 800, 600))
    return img


@pytest.fixture
def write_image(tmp_path):
    """Factory that saves a solid image under tmp_path and returns its path."""
    def _write(name, size=(100, 50), color=(10, 20, 30), mode="RGB", folder=None):
        target = (folder or tmp_path) / name
        target.parent.mkdir(parents=True, exist_ok=True)
        Image.new(mode, size, color).save(target)
        return target
    return _write
