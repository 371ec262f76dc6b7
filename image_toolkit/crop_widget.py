"""
Interactive crop viewport widget and Qt image helpers.

This module contains everything that touches both Qt **and** image display:
``pil_to_qpixmap``, the background ``ImageLoaderThread``, and the
``CropViewportWidget`` that draws the transformed image under a fixed crop
frame.  All geometry lives in the ``CropSession``; the widget only forwards
widget-local coordinates (the container frame) and paints the result.
"""

from pathlib import Path

from PIL import Image
from PyQt6.QtCore import QEvent, QPointF, QRectF, Qt, QThread, pyqtSignal
from PyQt6.QtGui import (
    QColor, QEventPoint, QImage, QKeyEvent, QMouseEvent, QPainter, QPainterPath,
    QPaintEvent, QPen, QPixmap, QResizeEvent, QWheelEvent,
)
from PyQt6.QtWidgets import QSizePolicy, QWidget

from image_toolkit.config import NUDGE_LARGE, NUDGE_SMALL, WHEEL_NOTCH
from image_toolkit.errors import InvalidImage
from image_toolkit.image_io import load_source_image
from image_toolkit.models import CropShape, Point
from image_toolkit.session import CropSession


# =============================================================================
# Qt ↔ PIL helpers
# =============================================================================

def pil_to_qimage(pil_img: Image.Image) -> QImage:
    """Convert a PIL Image to a detached QImage."""
    img_rgba = pil_img.convert("RGBA")
    data = img_rgba.tobytes("raw", "RGBA")
    qimg = QImage(data, img_rgba.width, img_rgba.height, QImage.Format.Format_RGBA8888)
    # QImage does not own *data*; copy before it goes out of scope
    return qimg.copy()


def pil_to_qpixmap(pil_img: Image.Image) -> QPixmap:
    """Convert a PIL Image to QPixmap."""
    return QPixmap.fromImage(pil_to_qimage(pil_img))


# =============================================================================
# Background image loader
# =============================================================================

class ImageLoaderThread(QThread):
    """Background thread for decoding images (especially large PSDs).

    Emits the decoded ``SourceImage``; pixmaps are built on the GUI thread.
    """
    loaded = pyqtSignal(object)
    error = pyqtSignal(str)

    def __init__(self, path: Path, parent=None):
        super().__init__(parent)
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def cancel(self):
        """Detach listeners and stop the thread; a superseded load must not reach the UI."""
        for signal in (self.loaded, self.error):
            try:
                signal.disconnect()
            except (TypeError, RuntimeError):
                pass  # Nothing connected or already destroyed
        if self.isRunning():
            self.quit()
            self.wait(500)

    def run(self):
        try:
            self.loaded.emit(load_source_image(self._path))
        except InvalidImage as e:
            self.error.emit(str(e))
        except Exception as e:
            self.error.emit(f"Failed to load {self._path.name}: {e}")


# =============================================================================
# Crop Viewport Widget: pan/zoom image under a fixed crop frame
# =============================================================================

def _point(pos: QPointF) -> Point:
    return Point(pos.x(), pos.y())


class CropViewportWidget(QWidget):
    """Shows the source image at the session's viewport transform with the crop frame on top."""

    view_changed = pyqtSignal()

    def __init__(self, session: CropSession, parent=None):
        super().__init__(parent)
        self.setMinimumSize(400, 300)
        self.setFocusPolicy(Qt.FocusPolicy.StrongFocus)
        self.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Expanding)
        self.setAttribute(Qt.WidgetAttribute.WA_AcceptTouchEvents)
        self.setCursor(Qt.CursorShape.OpenHandCursor)

        self._session = session
        self._pixmap: QPixmap | None = None
        self._loading = False

    def set_loading(self, loading: bool):
        """Show/hide loading indicator."""
        self._loading = loading
        self.update()

    def set_pixmap(self, pixmap: QPixmap | None):
        """Set the display pixmap for the session's current source image."""
        self._loading = False
        self._pixmap = pixmap
        self.refresh()

    def refresh(self):
        """Re-sync the container size and repaint (after image or frame changes)."""
        self._session.set_container(self.width(), self.height())
        self.update()
        self.view_changed.emit()

    def _controller(self):
        if self._pixmap is None or not self._session.is_ready():
            return None
        return self._session.controller

    # --- Zoom slots ---

    def zoom_in(self):
        controller = self._controller()
        if controller:
            controller.zoom_in()
            self._changed()

    def zoom_out(self):
        controller = self._controller()
        if controller:
            controller.zoom_out()
            self._changed()

    def _changed(self):
        self.view_changed.emit()
        self.update()

    # --- Painting ---

    def paintEvent(self, event: QPaintEvent):
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)
        painter.fillRect(self.rect(), QColor(30, 30, 30))

        controller = self._controller()
        if controller is None:
            painter.setPen(QColor(128, 128, 128))
            msg = "Loading image…" if self._loading else "No image loaded"
            painter.drawText(self.rect(), Qt.AlignmentFlag.AlignCenter, msg)
            painter.end()
            return

        state = controller.state
        image = controller.image
        target = QRectF(state.translate_x, state.translate_y,
                        image.width * state.scale, image.height * state.scale)
        painter.drawPixmap(target, self._pixmap, QRectF(self._pixmap.rect()))

        # Dim everything outside the frame
        frame = controller.frame
        frame_rect = QRectF(frame.x, frame.y, frame.width, frame.height)
        inner = QPainterPath()
        if frame.shape is CropShape.CIRCLE:
            inner.addEllipse(frame_rect)
        else:
            inner.addRect(frame_rect)
        outer = QPainterPath()
        outer.addRect(QRectF(self.rect()))
        painter.fillPath(outer.subtracted(inner), QColor(0, 0, 0, 140))

        # Frame border
        painter.setPen(QPen(QColor(255, 255, 255), 2))
        painter.setBrush(Qt.BrushStyle.NoBrush)
        if frame.shape is CropShape.CIRCLE:
            painter.drawEllipse(frame_rect)
        else:
            painter.drawRect(frame_rect)

        # Output size label
        out_w, out_h = self._session.output
        painter.drawText(
            frame_rect.adjusted(0, -20, 0, 0).toRect(),
            Qt.AlignmentFlag.AlignHCenter | Qt.AlignmentFlag.AlignTop,
            f"{out_w} × {out_h}  ·  {state.scale:.0%}",
        )
        painter.end()

    def resizeEvent(self, event: QResizeEvent):
        self._session.set_container(self.width(), self.height())
        super().resizeEvent(event)

    # --- Mouse interaction ---

    def mousePressEvent(self, event: QMouseEvent):
        controller = self._controller()
        if event.button() != Qt.MouseButton.LeftButton or controller is None:
            return
        controller.press(_point(event.position()))
        self.setCursor(Qt.CursorShape.ClosedHandCursor)

    def mouseMoveEvent(self, event: QMouseEvent):
        controller = self._controller()
        if controller is None or not controller.is_active():
            return
        controller.move(_point(event.position()))
        self._changed()

    def mouseReleaseEvent(self, event: QMouseEvent):
        controller = self._controller()
        if event.button() == Qt.MouseButton.LeftButton and controller is not None:
            controller.release()
        self.setCursor(Qt.CursorShape.OpenHandCursor)

    def wheelEvent(self, event: QWheelEvent):
        controller = self._controller()
        if controller is None:
            return
        notches = event.angleDelta().y() / WHEEL_NOTCH
        if notches:
            controller.wheel(notches, _point(event.position()))
            self._changed()
        event.accept()

    # --- Touch interaction ---

    def event(self, event: QEvent) -> bool:
        kind = event.type()
        if kind not in (QEvent.Type.TouchBegin, QEvent.Type.TouchUpdate,
                        QEvent.Type.TouchEnd, QEvent.Type.TouchCancel):
            return super().event(event)

        controller = self._controller()
        if controller is None:
            event.ignore()
            return False

        points = [_point(p.position()) for p in event.points()
                  if p.state() != QEventPoint.State.Released]
        if kind == QEvent.Type.TouchBegin:
            controller.touch_begin(points)
        elif kind == QEvent.Type.TouchUpdate:
            controller.touch_update(points)
            self._changed()
        else:
            controller.touch_end()
        event.accept()
        return True

    # --- Keyboard pan/zoom ---

    def keyPressEvent(self, event: QKeyEvent):
        controller = self._controller()
        if controller is None:
            return super().keyPressEvent(event)
        amount = NUDGE_LARGE if event.modifiers() & Qt.KeyboardModifier.ShiftModifier else NUDGE_SMALL
        key = event.key()
        if key == Qt.Key.Key_Left:
            controller.pan(-amount, 0)
        elif key == Qt.Key.Key_Right:
            controller.pan(amount, 0)
        elif key == Qt.Key.Key_Up:
            controller.pan(0, -amount)
        elif key == Qt.Key.Key_Down:
            controller.pan(0, amount)
        elif key in (Qt.Key.Key_Plus, Qt.Key.Key_Equal):
            controller.zoom_in()
        elif key == Qt.Key.Key_Minus:
            controller.zoom_out()
        else:
            super().keyPressEvent(event)
            return
        self._changed()
