import numpy as np
import pytest
from PIL import Image

from image_toolkit.errors import InvalidConfiguration
from image_toolkit.qr import QrOptions, build_matrix, gradient_fill, is_finder, render_qr


def test_matrix_has_finder_patterns_and_no_quiet_zone():
    matrix = build_matrix("hello")

    count = len(matrix)
    assert count == 21
    assert all(len(row) == count for row in matrix)
    # Finder outer ring is dark, the ring inside it light
    assert matrix[0][0] and matrix[0][6] and matrix[6][0]
    assert not matrix[1][1]
    assert matrix[0][count - 1]
    assert matrix[count - 1][0]


@pytest.mark.parametrize("text", ["", "   "])
def test_matrix_rejects_empty_text(text):
    with pytest.raises(InvalidConfiguration):
        build_matrix(text)


def test_matrix_rejects_oversized_payload():
    with pytest.raises(InvalidConfiguration):
        build_matrix("x" * 5000)


def test_is_finder():
    assert is_finder(0, 0, 21)
    assert is_finder(6, 20, 21)
    assert is_finder(14, 3, 21)
    assert not is_finder(10, 10, 21)
    assert not is_finder(7, 7, 21)


def test_plain_render_is_opaque_square():
    img = render_qr(QrOptions(text="https://example.com"))

    assert img.mode == "RGBA"
    assert img.size == (256, 256)
    assert img.getpixel((1, 1)) == (0, 0, 0, 255)
    assert np.array(img)[..., 3].min() == 255


def test_custom_colours_and_size():
    img = render_qr(QrOptions(text="hi", size=128, color_dark="#112233", color_light="#ffeedd"))

    assert img.size == (128, 128)
    assert img.getpixel((1, 1)) == (0x11, 0x22, 0x33, 255)
    colours = {tuple(p) for p in np.array(img).reshape(-1, 4).tolist()}
    assert colours == {(0x11, 0x22, 0x33, 255), (0xff, 0xee, 0xdd, 255)}


def test_styled_render_has_rounded_corners():
    options = QrOptions(text="https://example.com", dot_style="round", fill="gradient",
                        fg_gradient_start="#0f2027", fg_gradient_end="#2c5364",
                        gradient_direction="radial")

    img = render_qr(options)

    assert img.size == (256, 256)
    assert img.getpixel((0, 0))[3] < 10
    assert img.getpixel((128, 128))[3] == 255


def test_render_with_logo_keeps_logo_centered():
    logo = Image.new("RGB", (50, 50), (255, 0, 0))

    img = render_qr(QrOptions(text="https://example.com", logo_size_ratio=0.2), logo)

    r, g, b, a = img.getpixel((128, 128))
    assert (r, g, b, a) == pytest.approx((255, 0, 0, 255), abs=2)


@pytest.mark.parametrize("changes", [
    {"color_dark": "black"},
    {"dot_style": "hex"},
    {"fill": "pattern"},
    {"gradient_direction": "diagonal"},
    {"logo_position": "middle"},
    {"logo_size_ratio": 0.8},
    {"logo_size_ratio": 0},
    {"size": 0},
])
def test_invalid_options_are_rejected(changes):
    options = QrOptions(text="ok", **changes)

    with pytest.raises(InvalidConfiguration):
        render_qr(options)


@pytest.mark.parametrize("direction, start_px, end_px", [
    ("vertical", (5, 0), (5, 9)),
    ("horizontal", (0, 5), (9, 5)),
])
def test_linear_gradient_runs_start_to_end(direction, start_px, end_px):
    img = gradient_fill(10, "#000000", "#ffffff", direction)

    assert img.getpixel(start_px)[:3] == (0, 0, 0)
    assert img.getpixel(end_px)[:3] == (255, 255, 255)


def test_radial_gradient_starts_at_center():
    img = gradient_fill(20, "#000000", "#ffffff", "radial")

    assert img.getpixel((10, 10))[0] < img.getpixel((0, 10))[0]
    assert img.getpixel((0, 0))[:3] == (255, 255, 255)
