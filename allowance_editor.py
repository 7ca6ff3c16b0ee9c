import logging

from PySide6.QtWidgets import (QDialog, QVBoxLayout, QHBoxLayout, QTabWidget, QTableWidget,
                               QTableWidgetItem, QPushButton, QHeaderView, QMessageBox)

from allowances import (GLUE_SIDES, STYLE_GROUPS, defaults_from_flutes, merge_with_defaults,
                        sanitize_flutes, to_number)
from config import THEME

logger = logging.getLogger(__name__)

PANEL_KEYS = ("p1", "p2", "p3", "p4", "gl")
ROW_HEADERS = (["Flute", "P1", "P2", "P3", "P4", "GL"]
               + [f"{g.upper()} {k}" for g in STYLE_GROUPS for k in ("flap", "H1")])


class AllowanceEditor(QDialog):
    """Edits the flute table and both allowance tables; saves through a SettingsStore."""

    def __init__(self, store, flutes, table, parent=None):
        super().__init__(parent)
        self.store = store
        self.setWindowTitle("Panel allowances")
        self.resize(900, 480)
        self.setStyleSheet(f"background-color: {THEME['bg_ui']}; color: {THEME['fg_text']};")

        layout = QVBoxLayout(self)
        self.tabs = QTabWidget()
        layout.addWidget(self.tabs)

        self.tbl_flutes = self._make_table(["Flute", "Thickness (mm)"])
        self.tabs.addTab(self.tbl_flutes, "Flutes")
        self.tbl_sides = {}
        for side in GLUE_SIDES:
            tbl = self._make_table(ROW_HEADERS)
            self.tbl_sides[side] = tbl
            self.tabs.addTab(tbl, f"{side.capitalize()} glue")

        btns = QHBoxLayout()
        self.btn_add = QPushButton("Add flute")
        self.btn_add.clicked.connect(self.add_flute_row)
        self.btn_reset = QPushButton("Reset defaults")
        self.btn_reset.clicked.connect(self.reset_defaults)
        self.btn_save = QPushButton("Save")
        self.btn_save.clicked.connect(self.save)
        self.btn_cancel = QPushButton("Cancel")
        self.btn_cancel.clicked.connect(self.reject)
        btns.addWidget(self.btn_add)
        btns.addWidget(self.btn_reset)
        btns.addStretch()
        btns.addWidget(self.btn_save)
        btns.addWidget(self.btn_cancel)
        layout.addLayout(btns)

        self.flutes = list(flutes)
        self.table = table
        self.load(self.flutes, table.to_dict())

    def _make_table(self, headers):
        tbl = QTableWidget(0, len(headers))
        tbl.setHorizontalHeaderLabels(headers)
        tbl.horizontalHeader().setSectionResizeMode(QHeaderView.Stretch)
        tbl.setStyleSheet(f"background-color: {THEME['bg_draw']}; color: white;")
        return tbl

    @staticmethod
    def _set(tbl, r, c, value):
        text = value if isinstance(value, str) else f"{value:g}"
        tbl.setItem(r, c, QTableWidgetItem(text))

    @staticmethod
    def _get(tbl, r, c):
        item = tbl.item(r, c)
        return item.text().strip() if item is not None else ""

    def load(self, flutes, data):
        self.tbl_flutes.setRowCount(len(flutes))
        for r, f in enumerate(flutes):
            self._set(self.tbl_flutes, r, 0, f["flute"])
            self._set(self.tbl_flutes, r, 1, f["thickness"])

        for side, tbl in self.tbl_sides.items():
            rows = data.get(side) or []
            tbl.setRowCount(len(rows))
            for r, row in enumerate(rows):
                values = [row["flute"]] + [row["panels"][k] for k in PANEL_KEYS]
                for g in STYLE_GROUPS:
                    values += [row[g]["flap"], row[g]["h1"]]
                for c, v in enumerate(values):
                    self._set(tbl, r, c, v)

    def add_flute_row(self):
        r = self.tbl_flutes.rowCount()
        self.tbl_flutes.insertRow(r)
        self._set(self.tbl_flutes, r, 0, "")
        self._set(self.tbl_flutes, r, 1, 0.0)
        self.tabs.setCurrentWidget(self.tbl_flutes)

    def read_flutes(self):
        rows = [{"flute": self._get(self.tbl_flutes, r, 0),
                 "thickness": self._get(self.tbl_flutes, r, 1)}
                for r in range(self.tbl_flutes.rowCount())]
        return sanitize_flutes(rows)

    def read_allowances(self):
        data = {}
        for side, tbl in self.tbl_sides.items():
            rows = []
            for r in range(tbl.rowCount()):
                cells = [self._get(tbl, r, c) for c in range(len(ROW_HEADERS))]
                row = {"flute": cells[0],
                       "panels": {k: to_number(v) for k, v in zip(PANEL_KEYS, cells[1:6])}}
                for i, g in enumerate(STYLE_GROUPS):
                    flap, h1 = cells[6 + 2 * i], cells[7 + 2 * i]
                    row[g] = {"flap": to_number(flap), "h1": to_number(h1)}
                rows.append(row)
            data[side] = rows
        return data

    def reset_defaults(self):
        answer = QMessageBox.question(self, "Reset defaults",
                                      "Replace both allowance tables with the defaults?")
        if answer != QMessageBox.Yes:
            return
        flutes = self.read_flutes() or self.flutes
        self.load(flutes, defaults_from_flutes(flutes))

    def save(self):
        flutes = self.read_flutes()
        if not flutes:
            QMessageBox.warning(self, "Flutes", "The flute table needs at least one row.")
            return
        try:
            self.flutes = self.store.save_flutes(flutes)
            merged = merge_with_defaults(self.read_allowances(), self.flutes)
            self.table = self.store.save_allowances(merged, self.flutes)
        except OSError as e:
            logger.exception("Could not save settings")
            QMessageBox.critical(self, "Save failed", str(e))
            return
        logger.info("Saved %d flutes and allowances to %s", len(self.flutes), self.store.directory)
        self.accept()
