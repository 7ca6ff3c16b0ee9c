from PySide6.QtWidgets import (QWidget, QVBoxLayout, QFormLayout, QPushButton,
                               QDoubleSpinBox, QComboBox, QCheckBox, QLabel)
from config import THEME

INPUT_STYLE = f"background-color: {THEME['bg_draw']}; color: white; border: 1px solid #555;"


class CollapsibleSection(QWidget):
    """Header button that shows/hides a form of labelled inputs."""

    def __init__(self, title, parent=None, expanded=False):
        super().__init__(parent)
        self.title_text = title
        self.expanded = expanded

        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(0)

        self.btn_toggle = QPushButton()
        self.btn_toggle.setStyleSheet(f"""
            QPushButton {{
                background-color: {THEME['bg_panel']};
                color: {THEME['fg_text']};
                text-align: left;
                padding: 8px;
                border: none;
                font-weight: bold;
                border-bottom: 1px solid #555;
            }}
            QPushButton:hover {{ background-color: {THEME['bg_ui']}; }}
        """)
        self.btn_toggle.clicked.connect(self.toggle)
        layout.addWidget(self.btn_toggle)

        self.content_area = QWidget()
        self.form = QFormLayout(self.content_area)
        self.form.setContentsMargins(5, 5, 5, 10)
        layout.addWidget(self.content_area)

        self._refresh_header()

    def _refresh_header(self):
        self.btn_toggle.setText(f"{'−' if self.expanded else '+'}  {self.title_text}")
        self.content_area.setVisible(self.expanded)

    def toggle(self):
        self.expanded = not self.expanded
        self._refresh_header()

    def add_row(self, label, widget):
        lbl = QLabel(label)
        lbl.setStyleSheet(f"color: {THEME['fg_text']};")
        self.form.addRow(lbl, widget)
        return widget

    def add_widget(self, widget):
        self.form.addRow(widget)
        return widget


def make_spin(value, min_v, max_v, step=1.0, decimals=1):
    sb = QDoubleSpinBox()
    sb.setRange(min_v, max_v)
    sb.setDecimals(decimals)
    sb.setSingleStep(step)
    sb.setValue(value)
    sb.setStyleSheet(INPUT_STYLE)
    return sb


def make_combo(items):
    """items: list of (value, label)."""
    cb = QComboBox()
    for value, label in items:
        cb.addItem(label, value)
    cb.setStyleSheet(INPUT_STYLE)
    return cb


def select_data(combo, value):
    idx = combo.findData(value)
    if idx >= 0:
        combo.setCurrentIndex(idx)


def make_check(text, checked=False):
    chk = QCheckBox(text)
    chk.setChecked(checked)
    chk.setStyleSheet(f"color: {THEME['fg_text']};")
    return chk
