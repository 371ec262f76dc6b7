"""
Main application window.

Hosts the four tools as tabs: interactive crop, color-keyed transparency,
batch resize with zip packaging, and stylized QR generation.  All image
work is delegated to the Qt-free modules; this file only wires widgets,
reports errors, and handles file dialogs.
"""

import os
from pathlib import Path

from PIL import Image
from PyQt6.QtCore import QPointF, Qt, QTimer, pyqtSignal
from PyQt6.QtGui import QColor, QMouseEvent, QPixmap
from PyQt6.QtWidgets import (
    QApplication, QButtonGroup, QCheckBox, QColorDialog, QComboBox, QFileDialog,
    QGroupBox, QHBoxLayout, QLabel, QLineEdit, QListWidget, QMainWindow, QMessageBox,
    QProgressDialog, QPushButton, QRadioButton, QScrollArea, QSlider, QSpinBox,
    QSplitter, QStatusBar, QTabWidget, QVBoxLayout, QWidget,
)

from image_toolkit.config import (
    IMAGE_EXTENSIONS, QR_DEBOUNCE_MS, QR_DOWNLOAD_NAME, QR_DOT_STYLES,
    QR_GRADIENT_DIRECTIONS, QR_GRADIENT_PRESETS, QR_LOGO_POSITIONS,
    RESIZE_PERCENT_MAX, RESIZE_PERCENT_MIN, TOLERANCE_MAX, TOLERANCE_MIN,
    TRANSPARENT_DOWNLOAD_NAME, ZIP_DOWNLOAD_NAME,
)
from image_toolkit.crop_widget import CropViewportWidget, ImageLoaderThread, pil_to_qpixmap
from image_toolkit.errors import InvalidConfiguration, InvalidImage, ToolkitError
from image_toolkit.image_io import decode_image, load_source_image, save_png
from image_toolkit.models import CropShape, SourceImage
from image_toolkit.qr import QrOptions, render_qr
from image_toolkit.resizer import ResizeResult, batch_resize, build_zip, write_results
from image_toolkit.session import CropSession
from image_toolkit.settings import load_settings
from image_toolkit.transparency import preview_scale, remove_colors, sample_color, scale_image

_IMAGE_FILTER = "Images ({})".format(" ".join(f"*{ext}" for ext in sorted(IMAGE_EXTENSIONS)))


# =============================================================================
# Small widgets
# =============================================================================

class ColorButton(QPushButton):
    """Push button showing a colour swatch; opens a colour dialog on click."""

    color_changed = pyqtSignal(str)

    def __init__(self, color: str = "#000000", parent=None):
        super().__init__(parent)
        self.setFixedHeight(28)
        self._color = color
        self.clicked.connect(self._pick)
        self._refresh()

    def color(self) -> str:
        return self._color

    def set_color(self, color: str):
        if color == self._color:
            return
        self._color = color
        self._refresh()
        self.color_changed.emit(color)

    def _pick(self):
        chosen = QColorDialog.getColor(QColor(self._color), self)
        if chosen.isValid():
            self.set_color(chosen.name())

    def _refresh(self):
        self.setText(self._color)
        text = "#000" if QColor(self._color).lightness() > 128 else "#fff"
        self.setStyleSheet(f"QPushButton {{ background: {self._color}; color: {text}; }}")


class ClickableImageLabel(QLabel):
    """Image preview that reports clicks in pixmap coordinates."""

    clicked = pyqtSignal(QPointF)

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setAlignment(Qt.AlignmentFlag.AlignLeft | Qt.AlignmentFlag.AlignTop)
        self.setCursor(Qt.CursorShape.CrossCursor)

    def mousePressEvent(self, event: QMouseEvent):
        pixmap = self.pixmap()
        if event.button() == Qt.MouseButton.LeftButton and pixmap and not pixmap.isNull():
            pos = event.position()
            if 0 <= pos.x() < pixmap.width() and 0 <= pos.y() < pixmap.height():
                self.clicked.emit(pos)
        super().mousePressEvent(event)


def _slider_with_spin(minimum: int, maximum: int, value: int) -> tuple[QSlider, QSpinBox, QHBoxLayout]:
    """Horizontal slider and spin box kept in sync."""
    slider = QSlider(Qt.Orientation.Horizontal)
    slider.setRange(minimum, maximum)
    slider.setValue(value)
    spin = QSpinBox()
    spin.setRange(minimum, maximum)
    spin.setValue(value)
    slider.valueChanged.connect(spin.setValue)
    spin.valueChanged.connect(slider.setValue)
    row = QHBoxLayout()
    row.addWidget(slider, stretch=1)
    row.addWidget(spin)
    return slider, spin, row


class MainWindow(QMainWindow):
    def __init__(self):
        super().__init__()
        self.setWindowTitle("Image Toolkit")
        self.setMinimumSize(900, 600)

        # Screen-aware startup size: default 1280×860, clamped to 80% of screen
        preferred_w, preferred_h = 1280, 860
        screen = QApplication.primaryScreen()
        if screen is not None:
            avail = screen.availableGeometry()
            preferred_w = min(preferred_w, int(avail.width() * 0.8))
            preferred_h = min(preferred_h, int(avail.height() * 0.8))
        self.resize(preferred_w, preferred_h)

        self._settings = load_settings()
        self._session = CropSession(self._settings)
        self._loader: ImageLoaderThread | None = None

        # Transparency state
        self._transparency_source: Image.Image | None = None
        self._transparency_result: Image.Image | None = None

        # Resize state
        self._resize_paths: list[Path] = []
        self._resize_results: list[ResizeResult] = []

        # QR state
        self._qr_logo: Image.Image | None = None
        self._qr_image: Image.Image | None = None
        self._qr_generating = False
        self._qr_timer = QTimer(self)
        self._qr_timer.setSingleShot(True)
        self._qr_timer.setInterval(QR_DEBOUNCE_MS)
        self._qr_timer.timeout.connect(self._generate_qr)

        self._build_ui()
        self._update_button_states()

    # =========================================================================
    # UI construction
    # =========================================================================

    def _build_ui(self):
        tabs = QTabWidget()
        tabs.addTab(self._build_crop_tab(), "✂ Crop")
        tabs.addTab(self._build_transparency_tab(), "🎨 Transparency")
        tabs.addTab(self._build_resize_tab(), "📐 Batch Resize")
        tabs.addTab(self._build_qr_tab(), "🔳 QR Code")
        self.setCentralWidget(tabs)

        self._status = QStatusBar()
        self.setStatusBar(self._status)
        self._status.showMessage("Open an image to begin.")

    @staticmethod
    def _side_panel(*groups: QWidget, width: int = 260) -> QWidget:
        """Stack groups in a fixed-width scrollable column."""
        inner = QWidget()
        inner_layout = QVBoxLayout(inner)
        inner_layout.setContentsMargins(0, 0, 0, 0)
        for group in groups:
            inner_layout.addWidget(group)
        inner_layout.addStretch()

        scroll = QScrollArea()
        scroll.setWidgetResizable(True)
        scroll.setWidget(inner)
        scroll.setHorizontalScrollBarPolicy(Qt.ScrollBarPolicy.ScrollBarAlwaysOff)
        scroll.setFrameShape(scroll.Shape.NoFrame)

        panel = QWidget()
        panel.setFixedWidth(width)
        layout = QVBoxLayout(panel)
        layout.setContentsMargins(4, 0, 0, 0)
        layout.addWidget(scroll)
        return panel

    # --- Crop tab ---

    def _build_crop_tab(self) -> QWidget:
        tab = QWidget()
        layout = QHBoxLayout(tab)
        layout.setContentsMargins(4, 4, 4, 4)
        splitter = QSplitter(Qt.Orientation.Horizontal)
        layout.addWidget(splitter)

        self._crop_widget = CropViewportWidget(self._session)
        self._crop_widget.view_changed.connect(self._update_crop_info)
        splitter.addWidget(self._crop_widget)

        # Image
        image_group = QGroupBox("Image")
        image_layout = QVBoxLayout(image_group)
        btn_open = QPushButton("📂 Open Image…")
        btn_open.clicked.connect(self._open_crop_image)
        image_layout.addWidget(btn_open)
        self._crop_file_label = QLabel("")
        self._crop_file_label.setWordWrap(True)
        image_layout.addWidget(self._crop_file_label)

        # Output size and shape
        size_group = QGroupBox("Output Size")
        size_layout = QVBoxLayout(size_group)
        row = QHBoxLayout()
        out_w, out_h = self._session.output
        self._width_input = QLineEdit(str(out_w))
        self._height_input = QLineEdit(str(out_h))
        self._width_input.editingFinished.connect(self._on_size_edited)
        self._height_input.editingFinished.connect(self._on_size_edited)
        row.addWidget(self._width_input)
        row.addWidget(QLabel("×"))
        row.addWidget(self._height_input)
        row.addWidget(QLabel("px"))
        size_layout.addLayout(row)

        aspect_row = QHBoxLayout()
        for preset in self._settings["aspect_presets"]:
            btn = QPushButton(preset["name"])
            btn.clicked.connect(lambda checked, name=preset["name"]: self._apply_aspect(name))
            aspect_row.addWidget(btn)
        size_layout.addLayout(aspect_row)

        shape_row = QHBoxLayout()
        self._shape_group = QButtonGroup(self)
        for shape, label in ((CropShape.SQUARE, "⬛ Square"), (CropShape.CIRCLE, "⚫ Circle")):
            btn = QPushButton(label)
            btn.setCheckable(True)
            btn.setChecked(shape is self._session.shape)
            btn.clicked.connect(lambda checked, s=shape: self._set_shape(s))
            self._shape_group.addButton(btn)
            shape_row.addWidget(btn)
        size_layout.addLayout(shape_row)

        # Zoom
        zoom_group = QGroupBox("Zoom")
        zoom_layout = QHBoxLayout(zoom_group)
        btn_zoom_out = QPushButton("➖")
        btn_zoom_out.clicked.connect(self._crop_widget.zoom_out)
        btn_zoom_in = QPushButton("➕")
        btn_zoom_in.clicked.connect(self._crop_widget.zoom_in)
        btn_reset = QPushButton("Reset")
        btn_reset.setToolTip("Re-center at the minimum zoom")
        btn_reset.clicked.connect(self._reset_view)
        zoom_layout.addWidget(btn_zoom_out)
        zoom_layout.addWidget(btn_zoom_in)
        zoom_layout.addWidget(btn_reset)

        # Actions and preview
        actions_group = QGroupBox("Result")
        actions_layout = QVBoxLayout(actions_group)
        self._btn_crop = QPushButton("✂ Crop")
        self._btn_crop.clicked.connect(self._crop)
        actions_layout.addWidget(self._btn_crop)
        self._btn_crop_save = QPushButton("💾 Save PNG…")
        self._btn_crop_save.clicked.connect(self._save_crop)
        actions_layout.addWidget(self._btn_crop_save)
        self._crop_preview = QLabel()
        self._crop_preview.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self._crop_preview.setMinimumHeight(200)
        self._crop_preview.setStyleSheet("QLabel { background: #444; }")
        actions_layout.addWidget(self._crop_preview)

        self._crop_info_label = QLabel("Crop: —")
        self._crop_info_label.setWordWrap(True)

        splitter.addWidget(self._side_panel(image_group, size_group, zoom_group,
                                            self._crop_info_label, actions_group))
        splitter.setSizes([900, 260])
        return tab

    # --- Transparency tab ---

    def _build_transparency_tab(self) -> QWidget:
        tab = QWidget()
        layout = QHBoxLayout(tab)
        layout.setContentsMargins(4, 4, 4, 4)

        self._transparency_preview = ClickableImageLabel()
        self._transparency_preview.setStyleSheet(
            "QLabel { background: qlineargradient(x1:0, y1:0, x2:1, y2:1, stop:0 #555, stop:1 #333); }"
        )
        self._transparency_preview.clicked.connect(self._on_eyedropper)
        preview_scroll = QScrollArea()
        preview_scroll.setWidgetResizable(True)
        preview_scroll.setWidget(self._transparency_preview)
        self._transparency_scroll = preview_scroll
        layout.addWidget(preview_scroll, stretch=1)

        image_group = QGroupBox("Image")
        image_layout = QVBoxLayout(image_group)
        btn_open = QPushButton("📂 Open Image…")
        btn_open.clicked.connect(self._open_transparency_image)
        image_layout.addWidget(btn_open)

        colors_group = QGroupBox("Colours to Remove")
        colors_layout = QVBoxLayout(colors_group)
        colors_layout.addWidget(QLabel("Click the image to pick into the selected slot."))
        self._picker_group = QButtonGroup(self)
        self._key_colors: list[ColorButton] = []
        for i, default in enumerate(("#ffffff", "#00ff00")):
            row = QHBoxLayout()
            radio = QRadioButton()
            radio.setChecked(i == 0)
            self._picker_group.addButton(radio, i)
            button = ColorButton(default)
            row.addWidget(radio)
            row.addWidget(button, stretch=1)
            colors_layout.addLayout(row)
            self._key_colors.append(button)

        colors_layout.addWidget(QLabel("Tolerance:"))
        self._tolerance_slider, self._tolerance_spin, row = _slider_with_spin(
            TOLERANCE_MIN, TOLERANCE_MAX, int(self._settings["tolerance"]))
        colors_layout.addLayout(row)

        self._btn_process = QPushButton("▶ Remove Background")
        self._btn_process.clicked.connect(self._process_transparency)
        colors_layout.addWidget(self._btn_process)

        download_group = QGroupBox("Download")
        download_layout = QVBoxLayout(download_group)
        download_layout.addWidget(QLabel("Scale (%):"))
        self._transparency_scale_slider, self._transparency_scale_spin, row = _slider_with_spin(
            RESIZE_PERCENT_MIN, RESIZE_PERCENT_MAX, 100)
        download_layout.addLayout(row)
        self._btn_transparency_save = QPushButton("💾 Save PNG…")
        self._btn_transparency_save.clicked.connect(self._save_transparency)
        download_layout.addWidget(self._btn_transparency_save)

        layout.addWidget(self._side_panel(image_group, colors_group, download_group))
        return tab

    # --- Resize tab ---

    def _build_resize_tab(self) -> QWidget:
        tab = QWidget()
        layout = QHBoxLayout(tab)
        layout.setContentsMargins(4, 4, 4, 4)

        self._resize_list = QListWidget()
        layout.addWidget(self._resize_list, stretch=1)

        files_group = QGroupBox("Images")
        files_layout = QVBoxLayout(files_group)
        btn_select = QPushButton("📂 Select Images…")
        btn_select.clicked.connect(self._select_resize_files)
        files_layout.addWidget(btn_select)
        self._resize_count_label = QLabel("No files selected.")
        self._resize_count_label.setWordWrap(True)
        files_layout.addWidget(self._resize_count_label)

        scale_group = QGroupBox("Scale (%)")
        scale_layout = QVBoxLayout(scale_group)
        self._resize_slider, self._resize_spin, row = _slider_with_spin(
            RESIZE_PERCENT_MIN, RESIZE_PERCENT_MAX, int(self._settings["resize_percent"]))
        scale_layout.addLayout(row)
        self._btn_resize = QPushButton("▶ Resize")
        self._btn_resize.clicked.connect(self._run_resize)
        scale_layout.addWidget(self._btn_resize)

        download_group = QGroupBox("Download")
        download_layout = QVBoxLayout(download_group)
        self._btn_zip = QPushButton("🗜 Save ZIP…")
        self._btn_zip.clicked.connect(self._save_zip)
        download_layout.addWidget(self._btn_zip)
        self._btn_resize_folder = QPushButton("📁 Save to Folder…")
        self._btn_resize_folder.clicked.connect(self._save_resize_folder)
        download_layout.addWidget(self._btn_resize_folder)

        layout.addWidget(self._side_panel(files_group, scale_group, download_group))
        return tab

    # --- QR tab ---

    def _build_qr_tab(self) -> QWidget:
        tab = QWidget()
        layout = QHBoxLayout(tab)
        layout.setContentsMargins(4, 4, 4, 4)

        self._qr_preview = QLabel("Enter a URL to generate a QR code")
        self._qr_preview.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self._qr_preview.setStyleSheet("QLabel { color: #888; }")
        layout.addWidget(self._qr_preview, stretch=1)

        content_group = QGroupBox("Content")
        content_layout = QVBoxLayout(content_group)
        self._qr_text = QLineEdit()
        self._qr_text.setPlaceholderText("https://example.com")
        self._qr_text.textChanged.connect(self._schedule_qr)
        content_layout.addWidget(self._qr_text)

        style_group = QGroupBox("Style")
        style_layout = QVBoxLayout(style_group)
        self._qr_dot_style = QComboBox()
        self._qr_dot_style.addItems(QR_DOT_STYLES)
        self._qr_dot_style.currentTextChanged.connect(self._schedule_qr)
        style_layout.addWidget(QLabel("Dots:"))
        style_layout.addWidget(self._qr_dot_style)

        fill_row = QHBoxLayout()
        self._qr_fill_solid = QRadioButton("Solid")
        self._qr_fill_gradient = QRadioButton("Gradient")
        self._qr_fill_solid.setChecked(True)
        self._qr_fill_solid.toggled.connect(self._on_qr_fill_changed)
        fill_row.addWidget(self._qr_fill_solid)
        fill_row.addWidget(self._qr_fill_gradient)
        style_layout.addLayout(fill_row)

        # Solid colours
        self._qr_solid_box = QWidget()
        solid_layout = QHBoxLayout(self._qr_solid_box)
        solid_layout.setContentsMargins(0, 0, 0, 0)
        self._qr_dark = ColorButton("#000000")
        self._qr_light = ColorButton("#ffffff")
        for button in (self._qr_dark, self._qr_light):
            button.color_changed.connect(self._schedule_qr)
            solid_layout.addWidget(button)
        style_layout.addWidget(self._qr_solid_box)

        # Gradient colours
        self._qr_gradient_box = QWidget()
        gradient_layout = QVBoxLayout(self._qr_gradient_box)
        gradient_layout.setContentsMargins(0, 0, 0, 0)
        self._qr_preset = QComboBox()
        self._qr_preset.addItems([p["name"] for p in QR_GRADIENT_PRESETS] + ["Custom"])
        self._qr_preset.currentIndexChanged.connect(self._on_qr_preset)
        gradient_layout.addWidget(self._qr_preset)
        first = QR_GRADIENT_PRESETS[0]
        self._qr_fg_start = ColorButton(first["fg_start"])
        self._qr_fg_end = ColorButton(first["fg_end"])
        self._qr_bg_start = ColorButton(first["bg_start"])
        self._qr_bg_end = ColorButton(first["bg_end"])
        for label, start, end in (("Foreground", self._qr_fg_start, self._qr_fg_end),
                                  ("Background", self._qr_bg_start, self._qr_bg_end)):
            gradient_layout.addWidget(QLabel(f"{label}:"))
            row = QHBoxLayout()
            for button in (start, end):
                button.color_changed.connect(self._on_qr_custom_color)
                row.addWidget(button)
            gradient_layout.addLayout(row)
        self._qr_direction = QComboBox()
        self._qr_direction.addItems(QR_GRADIENT_DIRECTIONS)
        self._qr_direction.currentTextChanged.connect(self._schedule_qr)
        gradient_layout.addWidget(self._qr_direction)
        self._qr_gradient_box.setVisible(False)
        style_layout.addWidget(self._qr_gradient_box)

        logo_group = QGroupBox("Logo")
        logo_layout = QVBoxLayout(logo_group)
        logo_row = QHBoxLayout()
        btn_logo = QPushButton("📂 Select…")
        btn_logo.clicked.connect(self._select_qr_logo)
        btn_clear = QPushButton("✕ Clear")
        btn_clear.clicked.connect(self._clear_qr_logo)
        logo_row.addWidget(btn_logo)
        logo_row.addWidget(btn_clear)
        logo_layout.addLayout(logo_row)
        self._qr_logo_label = QLabel("No logo")
        logo_layout.addWidget(self._qr_logo_label)

        logo_layout.addWidget(QLabel("Size (%):"))
        self._qr_logo_size, _spin, row = _slider_with_spin(5, 50, 20)
        self._qr_logo_size.valueChanged.connect(self._schedule_qr)
        logo_layout.addLayout(row)
        self._qr_logo_position = QComboBox()
        self._qr_logo_position.addItems(QR_LOGO_POSITIONS)
        self._qr_logo_position.currentTextChanged.connect(self._schedule_qr)
        logo_layout.addWidget(self._qr_logo_position)
        self._qr_logo_circle = QCheckBox("Circular logo")
        self._qr_logo_circle.toggled.connect(self._schedule_qr)
        logo_layout.addWidget(self._qr_logo_circle)

        actions_group = QGroupBox("Actions")
        actions_layout = QVBoxLayout(actions_group)
        self._btn_qr_generate = QPushButton("🔄 Update Preview")
        self._btn_qr_generate.clicked.connect(self._generate_qr)
        actions_layout.addWidget(self._btn_qr_generate)
        self._btn_qr_save = QPushButton("💾 Save PNG…")
        self._btn_qr_save.clicked.connect(self._save_qr)
        actions_layout.addWidget(self._btn_qr_save)

        layout.addWidget(self._side_panel(content_group, style_group, logo_group, actions_group,
                                          width=280))
        return tab

    # =========================================================================
    # Crop tool
    # =========================================================================

    def _open_crop_image(self):
        path, _ = QFileDialog.getOpenFileName(self, "Open Image", "", _IMAGE_FILTER)
        if not path:
            return
        path = Path(path)
        self._crop_file_label.setText(path.name)
        self._crop_widget.set_loading(True)

        # Cancel any previous loader
        if self._loader is not None:
            self._loader.cancel()

        self._loader = ImageLoaderThread(path, self)
        self._loader.loaded.connect(self._on_crop_image_loaded)
        self._loader.error.connect(self._on_crop_image_error)
        self._loader.start()

    def _on_crop_image_loaded(self, source: SourceImage):
        if self._loader is None or source.path != self._loader.path:
            return  # Superseded by a newer open
        try:
            self._session.load_image(source)
        except InvalidImage as e:
            self._on_crop_image_error(str(e))
            return
        self._crop_preview.clear()
        self._crop_widget.set_pixmap(pil_to_qpixmap(source.image))
        self._status.showMessage(f"Loaded {self._crop_file_label.text()} ({source.width}×{source.height})")
        self._update_button_states()

    def _on_crop_image_error(self, error: str):
        self._crop_widget.set_loading(False)
        QMessageBox.warning(self, "Image Error", error)
        self._update_button_states()

    def _on_size_edited(self):
        try:
            self._session.configure(self._width_input.text(), self._height_input.text())
        except InvalidConfiguration as e:
            self._status.showMessage(f"⚠ {e}")
        self._sync_size_inputs()
        self._crop_widget.refresh()

    def _sync_size_inputs(self):
        out_w, out_h = self._session.output
        self._width_input.setText(str(out_w))
        self._height_input.setText(str(out_h))

    def _apply_aspect(self, name: str):
        try:
            self._session.apply_aspect(name)
        except InvalidConfiguration as e:
            QMessageBox.warning(self, "Invalid Size", str(e))
            return
        for button in self._shape_group.buttons():
            button.setChecked(button.text().endswith(self._session.shape.value.capitalize()))
        self._sync_size_inputs()
        self._crop_widget.refresh()

    def _set_shape(self, shape: CropShape):
        try:
            self._session.set_shape(shape)
        except InvalidConfiguration as e:
            QMessageBox.warning(self, "Invalid Size", str(e))
            return
        self._sync_size_inputs()
        self._crop_widget.refresh()

    def _reset_view(self):
        self._session.set_policy(self._session.policy)
        self._crop_widget.refresh()

    def _update_crop_info(self):
        if not self._session.is_ready():
            self._crop_info_label.setText("Crop: —")
            return
        rect = self._session.source_rect()
        self._crop_info_label.setText(
            f"Crop: {rect.s_width:.0f} × {rect.s_height:.0f} px at ({rect.sx:.0f}, {rect.sy:.0f})\n"
            f"Zoom: {self._session.controller.state.scale:.1%}"
        )

    def _crop(self):
        if not self._session.has_image():
            QMessageBox.information(self, "No Image", "Please open an image first.")
            return
        try:
            raster = self._session.crop()
        except ToolkitError as e:
            QMessageBox.warning(self, "Crop Failed", str(e))
            return
        pixmap = pil_to_qpixmap(raster)
        self._crop_preview.setPixmap(pixmap.scaled(
            self._crop_preview.width(), 240,
            Qt.AspectRatioMode.KeepAspectRatio, Qt.TransformationMode.SmoothTransformation,
        ))
        self._update_button_states()

    def _save_crop(self):
        if self._session.raster is None:
            QMessageBox.information(self, "Nothing to Save", "Crop the image first.")
            return
        path, _ = QFileDialog.getSaveFileName(
            self, "Save Cropped Image", self._session.default_filename(), "PNG (*.png)")
        if not path:
            return
        try:
            out = self._session.export_png(Path(path))
        except OSError as e:
            QMessageBox.critical(self, "Save Failed", str(e))
            return
        self._status.showMessage(f"Saved: {out}")

    # =========================================================================
    # Transparency tool
    # =========================================================================

    def _open_transparency_image(self):
        path, _ = QFileDialog.getOpenFileName(self, "Open Image", "", _IMAGE_FILTER)
        if not path:
            return
        try:
            self._transparency_source = load_source_image(Path(path)).image.convert("RGBA")
        except InvalidImage as e:
            QMessageBox.warning(self, "Image Error", str(e))
            return
        self._transparency_result = None
        self._show_transparency(self._transparency_source)
        self._update_button_states()

    def _show_transparency(self, img: Image.Image):
        available = self._transparency_scroll.viewport().width()
        scale = preview_scale(available, img.width)
        pixmap = pil_to_qpixmap(img)
        if scale < 1:
            pixmap = pixmap.scaled(
                max(1, round(img.width * scale)), max(1, round(img.height * scale)),
                Qt.AspectRatioMode.KeepAspectRatio, Qt.TransformationMode.SmoothTransformation,
            )
        self._transparency_preview.setPixmap(pixmap)

    def _on_eyedropper(self, pos: QPointF):
        if self._transparency_source is None:
            return
        pixmap = self._transparency_preview.pixmap()
        color = sample_color(self._transparency_source, (pixmap.width(), pixmap.height()),
                             (pos.x(), pos.y()))
        self._key_colors[self._picker_group.checkedId()].set_color(color)

    def _process_transparency(self):
        if self._transparency_source is None:
            QMessageBox.information(self, "No Image", "Please open an image first.")
            return
        self._btn_process.setEnabled(False)
        QApplication.setOverrideCursor(Qt.CursorShape.WaitCursor)
        QApplication.processEvents()
        try:
            self._transparency_result = remove_colors(
                self._transparency_source,
                [button.color() for button in self._key_colors],
                self._tolerance_spin.value(),
            )
        except InvalidConfiguration as e:
            QMessageBox.warning(self, "Invalid Colour", str(e))
        finally:
            QApplication.restoreOverrideCursor()
            self._btn_process.setEnabled(True)

        if self._transparency_result is not None:
            self._show_transparency(self._transparency_result)
            self._transparency_scale_spin.setValue(100)
        self._update_button_states()

    def _save_transparency(self):
        if self._transparency_result is None:
            return
        path, _ = QFileDialog.getSaveFileName(
            self, "Save Transparent Image", TRANSPARENT_DOWNLOAD_NAME, "PNG (*.png)")
        if not path:
            return
        try:
            scaled = scale_image(self._transparency_result, self._transparency_scale_spin.value())
            out = save_png(scaled, Path(path))
        except (InvalidConfiguration, OSError) as e:
            QMessageBox.critical(self, "Save Failed", str(e))
            return
        self._status.showMessage(f"Saved: {out} ({scaled.width}×{scaled.height})")

    # =========================================================================
    # Batch resize tool
    # =========================================================================

    def _select_resize_files(self):
        paths, _ = QFileDialog.getOpenFileNames(self, "Select Images", "", _IMAGE_FILTER)
        self._resize_paths = [Path(p) for p in paths]
        self._resize_results = []
        self._resize_list.clear()
        if self._resize_paths:
            self._resize_count_label.setText(
                f"{len(self._resize_paths)} file(s) selected. Choose a scale and press Resize.")
        else:
            self._resize_count_label.setText("No files selected.")
        self._update_button_states()

    def _run_resize(self):
        if not self._resize_paths:
            QMessageBox.information(self, "No Images", "No images selected.")
            return

        total = len(self._resize_paths)
        progress = QProgressDialog("Resizing…", None, 0, total, self)
        progress.setWindowModality(Qt.WindowModality.WindowModal)
        progress.setMinimumDuration(0)
        progress.setValue(0)
        QApplication.processEvents()

        def on_progress(done: int, count: int, name: str):
            progress.setValue(done)
            progress.setLabelText(f"Resizing: {name}  ({done}/{count})")
            QApplication.processEvents()

        self._btn_resize.setEnabled(False)
        workers = 1 if total == 1 else max(1, min(total, (os.cpu_count() or 4) - 1))
        try:
            results, failures = batch_resize(self._resize_paths, self._resize_spin.value(),
                                             workers=workers, progress=on_progress)
        except InvalidConfiguration as e:
            QMessageBox.warning(self, "Invalid Scale", str(e))
            return
        finally:
            progress.setValue(total)
            self._btn_resize.setEnabled(True)

        self._resize_results = results
        self._resize_list.clear()
        for result in results:
            self._resize_list.addItem(f"  ✅  {result.describe()}")
        for failure in failures:
            self._resize_list.addItem(f"  ❌  {failure.name}: {failure.error}")

        if failures:
            err_names = "\n".join(f"• {f.name}: {f.error}" for f in failures[:10])
            suffix = f"\n…and {len(failures) - 10} more" if len(failures) > 10 else ""
            QMessageBox.warning(self, "Some images failed", f"{len(failures)} failed:\n\n{err_names}{suffix}")
        self._status.showMessage(f"Resize complete ({len(results)}/{total}).")
        self._update_button_states()

    def _save_zip(self):
        if not self._resize_results:
            return
        path, _ = QFileDialog.getSaveFileName(self, "Save ZIP", ZIP_DOWNLOAD_NAME, "ZIP (*.zip)")
        if not path:
            return
        try:
            Path(path).write_bytes(build_zip(self._resize_results))
        except OSError as e:
            QMessageBox.critical(self, "Save Failed", str(e))
            return
        self._status.showMessage(f"Saved: {path}")

    def _save_resize_folder(self):
        if not self._resize_results:
            return
        folder = QFileDialog.getExistingDirectory(self, "Select Output Folder")
        if not folder:
            return
        try:
            written = write_results(self._resize_results, Path(folder))
        except OSError as e:
            QMessageBox.critical(self, "Save Failed", str(e))
            return
        self._status.showMessage(f"Saved {len(written)} file(s) to {folder}")

    # =========================================================================
    # QR tool
    # =========================================================================

    def _schedule_qr(self, *args):
        self._qr_timer.start()

    def _on_qr_fill_changed(self, *args):
        gradient = self._qr_fill_gradient.isChecked()
        self._qr_solid_box.setVisible(not gradient)
        self._qr_gradient_box.setVisible(gradient)
        self._schedule_qr()

    def _on_qr_preset(self, index: int):
        if index >= len(QR_GRADIENT_PRESETS):
            return  # "Custom" keeps the current colours
        preset = QR_GRADIENT_PRESETS[index]
        for button, key in ((self._qr_fg_start, "fg_start"), (self._qr_fg_end, "fg_end"),
                            (self._qr_bg_start, "bg_start"), (self._qr_bg_end, "bg_end")):
            button.blockSignals(True)
            button.set_color(preset[key])
            button.blockSignals(False)
        self._schedule_qr()

    def _on_qr_custom_color(self, *args):
        self._qr_preset.blockSignals(True)
        self._qr_preset.setCurrentIndex(len(QR_GRADIENT_PRESETS))
        self._qr_preset.blockSignals(False)
        self._schedule_qr()

    def _select_qr_logo(self):
        path, _ = QFileDialog.getOpenFileName(self, "Select Logo", "", _IMAGE_FILTER)
        if not path:
            return
        try:
            self._qr_logo = decode_image(Path(path)).convert("RGBA")
        except InvalidImage as e:
            self._qr_logo = None
            QMessageBox.warning(self, "Logo Error", f"Failed to load logo. Check the file format.\n{e}")
        self._qr_logo_label.setText(Path(path).name if self._qr_logo else "No logo")
        self._schedule_qr()

    def _clear_qr_logo(self):
        self._qr_logo = None
        self._qr_logo_label.setText("No logo")
        self._schedule_qr()

    def _qr_options(self) -> QrOptions:
        return QrOptions(
            text=self._qr_text.text().strip(),
            color_dark=self._qr_dark.color(),
            color_light=self._qr_light.color(),
            dot_style=self._qr_dot_style.currentText(),
            fill="gradient" if self._qr_fill_gradient.isChecked() else "solid",
            fg_gradient_start=self._qr_fg_start.color(),
            fg_gradient_end=self._qr_fg_end.color(),
            bg_gradient_start=self._qr_bg_start.color(),
            bg_gradient_end=self._qr_bg_end.color(),
            gradient_direction=self._qr_direction.currentText(),
            logo_size_ratio=self._qr_logo_size.value() / 100,
            logo_position=self._qr_logo_position.currentText(),
            circular_logo=self._qr_logo_circle.isChecked(),
        )

    def _generate_qr(self):
        if self._qr_generating:
            return
        options = self._qr_options()
        if not options.text:
            self._qr_image = None
            self._qr_preview.setPixmap(QPixmap())
            self._qr_preview.setText("Enter a URL to generate a QR code")
            self._update_button_states()
            return

        self._qr_generating = True
        self._btn_qr_generate.setEnabled(False)
        self._btn_qr_generate.setText("Generating…")
        try:
            self._qr_image = render_qr(options, self._qr_logo)
            self._qr_preview.setPixmap(pil_to_qpixmap(self._qr_image))
        except InvalidConfiguration as e:
            self._qr_image = None
            self._qr_preview.setPixmap(QPixmap())
            self._qr_preview.setText(f"Generation failed:\n{e}")
        finally:
            self._btn_qr_generate.setEnabled(True)
            self._btn_qr_generate.setText("🔄 Update Preview")
            self._qr_generating = False
        self._update_button_states()

    def _save_qr(self):
        if self._qr_image is None:
            return
        path, _ = QFileDialog.getSaveFileName(self, "Save QR Code", QR_DOWNLOAD_NAME, "PNG (*.png)")
        if not path:
            return
        try:
            out = save_png(self._qr_image, Path(path))
        except OSError as e:
            QMessageBox.critical(self, "Save Failed", str(e))
            return
        self._status.showMessage(f"Saved: {out}")

    # =========================================================================
    # Button states
    # =========================================================================

    def _update_button_states(self):
        self._btn_crop.setEnabled(self._session.has_image())
        self._btn_crop_save.setEnabled(self._session.raster is not None)
        self._btn_process.setEnabled(self._transparency_source is not None)
        self._btn_transparency_save.setEnabled(self._transparency_result is not None)
        self._btn_resize.setEnabled(bool(self._resize_paths))
        self._btn_zip.setEnabled(bool(self._resize_results))
        self._btn_resize_folder.setEnabled(bool(self._resize_results))
        self._btn_qr_save.setEnabled(self._qr_image is not None)
