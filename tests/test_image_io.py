import io

import pytest
from PIL import Image

from image_toolkit.errors import InvalidImage
from image_toolkit.image_io import (
    decode_image, encode_png, load_source_image, save_png, unique_name, unique_path,
)


def _png_bytes(size=(30, 20), mode="RGB"):
    buffer = io.BytesIO()
    Image.new(mode, size).save(buffer, "PNG")
    return buffer.getvalue()


def test_decode_accepts_bytes_paths_and_images(write_image):
    path = write_image("x.png", size=(30, 20))

    assert decode_image(_png_bytes()).size == (30, 20)
    assert decode_image(path).size == (30, 20)
    assert decode_image(str(path)).size == (30, 20)
    img = Image.new("RGB", (5, 5))
    assert decode_image(img) is img


def test_decode_rejects_garbage(tmp_path):
    bad = tmp_path / "bad.jpg"
    bad.write_bytes(b"\x00\x01garbage")

    with pytest.raises(InvalidImage):
        decode_image(b"garbage")
    with pytest.raises(InvalidImage):
        decode_image(bad)
    with pytest.raises(InvalidImage):
        decode_image(tmp_path / "missing.png")


def test_load_source_image_normalizes_mode(write_image):
    path = write_image("grey.png", mode="L", color=128)

    source = load_source_image(path)

    assert source.image.mode == "RGBA"
    assert source.path == path
    assert (source.width, source.height) == (100, 50)


def test_load_source_image_keeps_rgb():
    source = load_source_image(_png_bytes())

    assert source.image.mode == "RGB"
    assert source.path is None


def test_encode_png_round_trips():
    data = encode_png(Image.new("RGBA", (7, 3), (1, 2, 3, 4)))

    with Image.open(io.BytesIO(data)) as img:
        assert img.format == "PNG"
        assert img.getpixel((0, 0)) == (1, 2, 3, 4)


def test_save_png_forces_extension_and_avoids_overwrite(tmp_path):
    img = Image.new("RGBA", (4, 4))

    first = save_png(img, tmp_path / "nested" / "crop.jpg")
    second = save_png(img, tmp_path / "nested" / "crop.png")

    assert first == tmp_path / "nested" / "crop.png"
    assert second == tmp_path / "nested" / "crop-01.png"


def test_unique_path(tmp_path):
    target = tmp_path / "a.png"
    assert unique_path(target) == target

    target.write_bytes(b"")
    (tmp_path / "a-01.png").write_bytes(b"")
    assert unique_path(target) == tmp_path / "a-02.png"


def test_unique_name():
    assert unique_name("a.png", set()) == "a.png"
    assert unique_name("a.png", {"a.png", "a-01.png"}) == "a-02.png"
    assert unique_name("README", {"README"}) == "README-01"
