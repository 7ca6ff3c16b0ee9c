import sys
import logging

from PySide6.QtWidgets import (QApplication, QMainWindow, QWidget, QVBoxLayout, QHBoxLayout,
                               QLabel, QFileDialog)
from PySide6.QtGui import QAction
from PySide6.QtCore import Qt

from config import THEME, settings_dir
from logging_config import setup_logging
from allowances import SettingsStore
from geometry_2d import BlankModel
from widgets_2d import DrawingArea2D, ParameterPanel, SummaryPanel, export_svg
from allowance_editor import AllowanceEditor

logger = logging.getLogger(__name__)


class PackagingApp(QMainWindow):
    def __init__(self, store=None):
        super().__init__()
        self.setWindowTitle("BoxBlank - FEFCO 0201 die-line")
        self.resize(1400, 900)
        self.setStyleSheet(f"QMainWindow {{ background-color: {THEME['bg_ui']}; }}")

        self.store = store or SettingsStore(settings_dir())
        self.flutes = self.store.load_flutes()
        self.table = self.store.load_allowances(self.flutes)
        self.blank = None
        self.data = None
        self._seed_key = None

        self.build_menu()

        main_widget = QWidget()
        self.setCentralWidget(main_widget)
        main_layout = QHBoxLayout(main_widget)
        main_layout.setContentsMargins(0, 0, 0, 0)
        main_layout.setSpacing(0)

        self.panel = ParameterPanel()
        self.panel.setFixedWidth(360)
        self.panel.set_flutes(self.flutes)
        self.panel.params_changed.connect(self.refresh)
        main_layout.addWidget(self.panel)

        right = QWidget()
        right_layout = QVBoxLayout(right)
        right_layout.setContentsMargins(0, 0, 0, 0)
        right_layout.setSpacing(0)
        self.canvas = DrawingArea2D()
        self.lbl_note = QLabel()
        self.lbl_note.setAlignment(Qt.AlignCenter)
        self.lbl_note.setStyleSheet(f"color: {THEME['highlight']}; padding: 4px;")
        self.lbl_note.hide()
        self.summary = SummaryPanel()
        right_layout.addWidget(self.lbl_note)
        right_layout.addWidget(self.canvas, 1)
        right_layout.addWidget(self.summary)
        main_layout.addWidget(right, 1)

        self.refresh(self.panel.params())

    def build_menu(self):
        menu = self.menuBar().addMenu("File")
        act_svg = QAction("Export SVG…", self)
        act_svg.triggered.connect(self.export_svg)
        menu.addAction(act_svg)
        act_quit = QAction("Quit", self)
        act_quit.triggered.connect(self.close)
        menu.addAction(act_quit)

        menu = self.menuBar().addMenu("Settings")
        act_allow = QAction("Allowances…", self)
        act_allow.triggered.connect(self.edit_allowances)
        menu.addAction(act_allow)

    def _compute(self, params):
        blank = BlankModel(params, self.table).compute()
        lay = blank.layout
        key = (lay.panels[1], lay.panels[2], blank.box.thickness, lay.reference_flap)
        if key != self._seed_key:
            # Panel geometry changed: start again from seeded gaps
            self._seed_key = key
            params = {k: v for k, v in params.items() if k not in BlankModel.GAP_KEYS}
            self.panel.reset_last_edited()
            blank = BlankModel(params, self.table).compute()
        return blank, params

    def refresh(self, params):
        try:
            blank, params = self._compute(params)
            model = BlankModel(params, self.table)
            polygons, cut_lines, crease_lines = model.get_data(blank)
        except Exception:
            logger.exception("Recompute failed, keeping the last drawing")
            return

        self.blank = blank
        self.data = (polygons, cut_lines, crease_lines)
        self.panel.set_gaps(blank.gaps)
        self.canvas.set_display(params.get('show_dims', True), params.get('show_labels', True))
        self.canvas.set_data(polygons, cut_lines, crease_lines, blank)
        self.summary.set_blank(blank)

        if blank.supported:
            self.lbl_note.hide()
        else:
            self.lbl_note.setText(f"Style {blank.box.style}: only 0201 is drawn, "
                                  f"the preview uses the 0201 geometry.")
            self.lbl_note.show()

    def export_svg(self):
        if self.blank is None:
            return
        path, _ = QFileDialog.getSaveFileName(self, "Export SVG", f"fefco_{self.blank.box.style}.svg",
                                              "SVG (*.svg)")
        if not path:
            return
        try:
            export_svg(path, *self.data, self.blank)
        except Exception:
            logger.exception("SVG export failed")

    def edit_allowances(self):
        dlg = AllowanceEditor(self.store, self.flutes, self.table, self)
        if dlg.exec():
            self.flutes = dlg.flutes
            self.table = dlg.table
            self.panel.set_flutes(self.flutes)
            self._seed_key = None
            self.refresh(self.panel.params())


def main():
    setup_logging(to_settings_dir=True)
    app = QApplication(sys.argv)
    window = PackagingApp()
    window.show()
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
