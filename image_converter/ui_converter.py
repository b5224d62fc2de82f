# ruff: noqa: PLR0915
"""Main converter window."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from PySide6.QtCore import Qt, QUrl
from PySide6.QtGui import QDesktopServices
from PySide6.QtWidgets import (
    QApplication,
    QComboBox,
    QFileDialog,
    QFormLayout,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QMainWindow,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from .dispatcher import ConversionRequest, ConversionResult, run_conversion
from .errors import UnsupportedConversion
from .formats import ImageFormat, conversion_label, detect_format, file_dialog_filter, targets_for
from .logger import get_logger
from .path_utils import abs_path, output_path_for
from .settings_manager import SettingsManager

_logger = get_logger("ui_converter")


@contextmanager
def _wait_cursor() -> Iterator[None]:
    QApplication.setOverrideCursor(Qt.CursorShape.WaitCursor)
    QApplication.processEvents()
    try:
        yield
    finally:
        QApplication.restoreOverrideCursor()


class ConverterWindow(QMainWindow):
    def __init__(self, settings: SettingsManager, parent=None):
        super().__init__(parent)
        self.setWindowTitle("Image Converter")
        self.resize(560, 220)
        self._settings = settings
        self.last_result: ConversionResult | None = None

        self.input_edit = QLineEdit()
        self.input_edit.setPlaceholderText("Image or PDF file")
        self.input_edit.textChanged.connect(self._on_input_changed)
        input_browse = QPushButton("Browse...")
        input_browse.clicked.connect(self._choose_input)

        self.output_edit = QLineEdit(settings.last_output_dir or "")
        self.output_edit.setPlaceholderText("Same folder as input")
        output_browse = QPushButton("Browse...")
        output_browse.clicked.connect(self._choose_output_folder)

        self.format_combo = QComboBox()
        self.format_combo.setMinimumWidth(200)

        self.convert_btn = QPushButton("Convert")
        self.convert_btn.clicked.connect(self.convert)
        self.open_folder_btn = QPushButton("Open Folder")
        self.open_folder_btn.clicked.connect(self.open_output_folder)

        self.status_label = QLabel("")
        self.status_label.setWordWrap(True)
        self.status_label.setTextInteractionFlags(Qt.TextInteractionFlag.TextSelectableByMouse)

        form = QFormLayout()
        input_row = QHBoxLayout()
        input_row.addWidget(self.input_edit)
        input_row.addWidget(input_browse)
        form.addRow("Input", input_row)
        output_row = QHBoxLayout()
        output_row.addWidget(self.output_edit)
        output_row.addWidget(output_browse)
        form.addRow("Output folder", output_row)
        form.addRow("Conversion", self.format_combo)

        btns = QHBoxLayout()
        btns.addStretch()
        btns.addWidget(self.convert_btn)
        btns.addWidget(self.open_folder_btn)

        layout = QVBoxLayout()
        layout.addLayout(form)
        layout.addWidget(self.status_label)
        layout.addStretch()
        layout.addLayout(btns)
        central = QWidget()
        central.setLayout(layout)
        self.setCentralWidget(central)

        self._refresh_conversions()

    # --- state -------------------------------------------------------------

    def set_input_path(self, path: str | Path) -> None:
        self.input_edit.setText(str(path))

    def selected_target(self) -> ImageFormat | None:
        data = self.format_combo.currentData()
        return ImageFormat(data) if data else None

    def _on_input_changed(self, _text: str) -> None:
        self.status_label.clear()
        self._refresh_conversions()

    def _refresh_conversions(self) -> None:
        """Repopulate the dropdown with the targets legal for the current input."""
        source = detect_format(self.input_edit.text().strip())
        self.format_combo.clear()
        if source is not None:
            for target in targets_for(source):
                self.format_combo.addItem(conversion_label(source, target), target.value)
            preferred = self._settings.last_target_format
            if preferred is not None:
                idx = self.format_combo.findData(preferred.value)
                if idx >= 0:
                    self.format_combo.setCurrentIndex(idx)
        has_pairs = self.format_combo.count() > 0
        self.format_combo.setEnabled(has_pairs)
        self.convert_btn.setEnabled(has_pairs)

    def _output_folder(self) -> Path | None:
        text = self.output_edit.text().strip()
        if text:
            return abs_path(text)
        src = self.input_edit.text().strip()
        return abs_path(src).parent if src else None

    # --- dialogs -----------------------------------------------------------

    def _choose_input(self) -> None:
        start = self._settings.last_input_dir or ""
        path, _ = QFileDialog.getOpenFileName(self, "Select input file", start, file_dialog_filter())
        if path:
            self.set_input_path(path)
            self._settings.set("last_input_dir", path)

    def _choose_output_folder(self) -> None:
        start = self.output_edit.text() or self._settings.last_output_dir or ""
        path = QFileDialog.getExistingDirectory(self, "Select output folder", start)
        if path:
            self.output_edit.setText(path)
            self._settings.set("last_output_dir", path)

    # --- actions -----------------------------------------------------------

    def convert(self) -> ConversionResult | None:
        src_text = self.input_edit.text().strip()
        target = self.selected_target()
        if not src_text or target is None:
            self.status_label.setText("Error: choose an input file with a supported extension")
            return None

        dst = output_path_for(src_text, target, self._output_folder())
        try:
            request = ConversionRequest.for_paths(abs_path(src_text), dst, target)
        except UnsupportedConversion as e:
            result = ConversionResult.failure(e)
        else:
            self.convert_btn.setEnabled(False)
            try:
                with _wait_cursor():
                    result = run_conversion(request)
            finally:
                self.convert_btn.setEnabled(True)

        self.last_result = result
        self.status_label.setText(result.message)
        if result.ok:
            _logger.info("converted %s -> %s", src_text, result.output_path)
            self._settings.set("last_target_format", target.value)
        else:
            _logger.error("conversion failed for %s: %s", src_text, result.error)
        return result

    def open_output_folder(self) -> None:
        folder = self._output_folder()
        if folder is None or not folder.is_dir():
            self.status_label.setText("Error: output folder does not exist")
            return
        QDesktopServices.openUrl(QUrl.fromLocalFile(str(folder)))
