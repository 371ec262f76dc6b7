import numpy as np
import pytest
from PIL import Image

from image_toolkit.errors import InvalidConfiguration
from image_toolkit.transparency import (
    color_distance, hex_to_rgb, preview_scale, remove_colors, rgb_to_hex, sample_color,
    scale_image, scaled_size,
)


@pytest.mark.parametrize("value", ["#FF8800", "ff8800", " #ff8800 "])
def test_hex_to_rgb(value):
    assert hex_to_rgb(value) == (255, 136, 0)


@pytest.mark.parametrize("value", ["#fff", "#gg0000", "", "ff88000", None])
def test_hex_to_rgb_rejects_malformed(value):
    with pytest.raises(InvalidConfiguration):
        hex_to_rgb(value)


def test_rgb_to_hex_round_trip():
    assert rgb_to_hex(255, 136, 0) == "#ff8800"
    assert color_distance((0, 0, 0), (3, 4, 0)) == pytest.approx(5)


def _strip(*colors):
    img = Image.new("RGB", (len(colors), 1))
    for x, color in enumerate(colors):
        img.putpixel((x, 0), color)
    return img


def test_remove_colors_exact_match_at_zero_tolerance():
    img = _strip((255, 255, 255), (0, 0, 0), (254, 255, 255))

    result = remove_colors(img, ["#ffffff"], 0)

    alpha = np.array(result)[0, :, 3]
    assert alpha.tolist() == [0, 255, 255]


def test_remove_colors_within_tolerance_and_multiple_keys():
    img = _strip((240, 240, 240), (0, 250, 0), (120, 120, 120))

    result = remove_colors(img, ["#ffffff", (0, 255, 0)], 30)

    alpha = np.array(result)[0, :, 3]
    assert alpha.tolist() == [0, 0, 255]


def test_remove_colors_leaves_source_untouched():
    img = Image.new("RGBA", (4, 4), (255, 255, 255, 255))

    remove_colors(img, ["#ffffff"], 10)

    assert img.getpixel((0, 0)) == (255, 255, 255, 255)


def test_remove_colors_keeps_existing_alpha_elsewhere():
    img = Image.new("RGBA", (2, 1), (10, 10, 10, 77))

    result = remove_colors(img, ["#ffffff"], 5)

    assert result.getpixel((0, 0)) == (10, 10, 10, 77)


def test_remove_colors_rejects_negative_tolerance():
    with pytest.raises(InvalidConfiguration):
        remove_colors(Image.new("RGB", (1, 1)), ["#000000"], -1)


def test_preview_scale_never_enlarges():
    assert preview_scale(500, 1000) == pytest.approx(0.5)
    assert preview_scale(2000, 1000) == 1.0


def test_sample_color_maps_preview_to_full_resolution():
    img = Image.new("RGB", (100, 50), (255, 0, 0))
    img.paste((0, 0, 255), (50, 0, 100, 50))

    assert sample_color(img, (50, 25), (10, 10)) == "#ff0000"
    assert sample_color(img, (50, 25), (30, 10)) == "#0000ff"
    # Clicks on the last preview pixel clamp to the image
    assert sample_color(img, (50, 25), (50, 25)) == "#0000ff"


@pytest.mark.parametrize("size, percent, expected", [
    ((200, 100), 50, (100, 50)),
    ((200, 100), 150, (300, 150)),
    ((3, 3), 50, (2, 2)),
    ((5, 7), 50, (3, 4)),
    ((15, 25), 10, (2, 3)),
    ((1, 1), 10, (1, 1)),
])
def test_scaled_size(size, percent, expected):
    assert scaled_size(*size, percent) == expected


@pytest.mark.parametrize("percent", [0, -10, float("nan"), "50", None])
def test_scaled_size_rejects_invalid_percent(percent):
    with pytest.raises(InvalidConfiguration):
        scaled_size(100, 100, percent)


def test_scale_image():
    img = Image.new("RGBA", (200, 100), (1, 2, 3, 4))

    assert scale_image(img, 25).size == (50, 25)
    same = scale_image(img, 100)
    assert same.size == img.size
    assert same is not img


def test_scale_image_rounds_halves_up():
    assert scale_image(Image.new("RGB", (5, 5)), 50).size == (3, 3)
