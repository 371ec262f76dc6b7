import pytest
from PIL import Image

from image_toolkit.errors import InvalidConfiguration, InvalidImage
from image_toolkit.models import CropShape, ScalePolicy, SourceImage
from image_toolkit.session import CropSession


@pytest.fixture
def session(settings, landscape_image):
    s = CropSession(settings)
    s.set_container(1000, 800)
    s.load_image(landscape_image)
    return s


def test_session_is_ready_after_image_and_container(settings, landscape_image):
    s = CropSession(settings)
    s.load_image(landscape_image)
    assert s.has_image()
    assert not s.is_ready()

    s.set_container(1000, 800)

    assert s.is_ready()
    assert (s.frame.x, s.frame.y, s.frame.width, s.frame.height) == pytest.approx((350, 250, 300, 300))


def test_crop_renders_output_size(session):
    raster = session.crop()

    assert raster.size == (300, 300)
    assert raster.mode == "RGBA"
    assert session.raster is raster


def test_crop_after_zoom_uses_zoomed_region(session):
    session.controller.zoom_by(2.0)

    rect = session.source_rect()

    assert (rect.sx, rect.sy, rect.s_width, rect.s_height) == pytest.approx((250, 150, 300, 300))


def test_configure_rejects_bad_size_and_keeps_state(session):
    frame, controller = session.frame, session.controller

    with pytest.raises(InvalidConfiguration):
        session.configure("abc", 300)

    assert session.output == (300, 300)
    assert session.frame is frame
    assert session.controller is controller


def test_aspect_preset_keeps_width(session):
    session.apply_aspect("16:9")

    assert session.output == (300, 169)
    assert session.aspect == "16:9"
    assert session.shape is CropShape.SQUARE
    assert session.frame.width / session.frame.height == pytest.approx(300 / 169)


def test_unknown_aspect_preset(session):
    with pytest.raises(InvalidConfiguration):
        session.apply_aspect("5:4")


def test_circle_shape_squares_output(session):
    session.configure(300, 169)

    session.set_shape(CropShape.CIRCLE)
    raster = session.crop()

    assert session.output == (169, 169)
    assert raster.size == (169, 169)
    assert raster.getpixel((0, 0))[3] == 0


def test_policy_change_reinitializes(session):
    session.set_policy("contain")

    assert session.policy is ScalePolicy.CONTAIN
    assert session.controller.state.scale == pytest.approx(0.375)


def test_crop_without_image_raises(settings):
    s = CropSession(settings)
    s.set_container(800, 600)

    with pytest.raises(InvalidImage):
        s.crop()


def test_export_requires_raster(session, tmp_path):
    with pytest.raises(InvalidImage):
        session.export_png(tmp_path / "out.png")


def test_export_writes_png(session, tmp_path):
    session.crop()

    out = session.export_png(tmp_path / "out.png")

    assert out.exists()
    with Image.open(out) as img:
        assert img.size == (300, 300)
        assert img.mode == "RGBA"


def test_default_filename_shape(session):
    name = session.default_filename()

    assert name.startswith("cropped-image-")
    assert name.endswith(".png")


def test_zero_size_image_is_rejected(settings):
    with pytest.raises(InvalidImage):
        SourceImage(Image.new("RGB", (0, 10)))

    s = CropSession(settings)
    with pytest.raises(InvalidImage):
        s.load_image(b"not an image")
    assert not s.has_image()
