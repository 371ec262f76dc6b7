import pytest

pytest.importorskip("PyQt6.QtWidgets")

from PIL import Image
from PyQt6.QtCore import QPoint, QPointF, Qt
from PyQt6.QtTest import QTest
from PyQt6.QtWidgets import QApplication

from image_toolkit.crop_widget import (
    CropViewportWidget, ImageLoaderThread, pil_to_qimage, pil_to_qpixmap,
)
from image_toolkit.session import CropSession


@pytest.fixture(scope="module")
def qapp():
    app = QApplication.instance() or QApplication([])
    yield app


@pytest.fixture
def widget(qapp, settings, landscape_image):
    session = CropSession(settings)
    session.load_image(landscape_image)
    w = CropViewportWidget(session)
    w.resize(1000, 800)
    w.show()
    qapp.processEvents()
    w.set_pixmap(pil_to_qpixmap(landscape_image))
    yield w
    w.deleteLater()


def test_pil_to_qimage_preserves_pixels(qapp):
    img = Image.new("RGBA", (3, 2), (10, 20, 30, 255))

    qimg = pil_to_qimage(img)

    assert (qimg.width(), qimg.height()) == (3, 2)
    color = qimg.pixelColor(1, 1)
    assert (color.red(), color.green(), color.blue()) == (10, 20, 30)


def test_widget_lays_out_frame_from_its_size(widget):
    session = widget._session

    assert session.is_ready()
    assert session.container == (1000, 800)
    assert session.frame.width == pytest.approx(300)


def test_zoom_buttons_change_scale_and_notify(widget):
    session = widget._session
    seen = []
    widget.view_changed.connect(lambda: seen.append(True))

    widget.zoom_in()
    zoomed = session.controller.state.scale
    widget.zoom_out()

    assert zoomed == pytest.approx(0.55)
    assert session.controller.state.scale < zoomed
    assert len(seen) == 2


def test_mouse_drag_pans_viewport(widget):
    controller = widget._session.controller
    start_x = controller.state.translate_x

    QTest.mousePress(widget, Qt.MouseButton.LeftButton, Qt.KeyboardModifier.NoModifier, QPoint(500, 400))
    QTest.mouseMove(widget, QPoint(480, 400))
    QTest.mouseRelease(widget, Qt.MouseButton.LeftButton, Qt.KeyboardModifier.NoModifier, QPoint(480, 400))

    assert not controller.is_active()
    assert controller.state.translate_x <= start_x


def test_arrow_keys_nudge(widget):
    controller = widget._session.controller
    start_x = controller.state.translate_x

    QTest.keyClick(widget, Qt.Key.Key_Left, Qt.KeyboardModifier.ShiftModifier)

    assert controller.state.translate_x == pytest.approx(start_x - 10)


def test_paint_does_not_fail(widget):
    widget.grab()
    widget._session.set_shape("circle")
    widget.refresh()
    widget.grab()


def test_cancelled_loader_does_not_deliver(qapp, tmp_path):
    path = tmp_path / "a.png"
    loader = ImageLoaderThread(path)
    received = []
    loader.loaded.connect(received.append)
    loader.error.connect(received.append)

    loader.cancel()
    loader.loaded.emit(object())
    loader.error.emit("late")

    assert loader.path == path
    assert received == []
