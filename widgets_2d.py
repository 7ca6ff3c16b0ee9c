import logging

from PySide6.QtWidgets import QWidget, QVBoxLayout, QHBoxLayout, QLabel, QScrollArea
from PySide6.QtGui import QPainter, QPen, QColor, QPolygonF, QFont
from PySide6.QtCore import Signal, Qt, QPointF, QRectF, QSize, QRect
from PySide6.QtSvg import QSvgGenerator

from config import THEME, DEFAULTS, STYLES, SUPPORTED_STYLES
from ui_utils import CollapsibleSection, make_spin, make_combo, make_check, select_data

logger = logging.getLogger(__name__)

MARGIN = 60


def _bbox(polygons):
    pts = [c for p in polygons for c in p['coords']]
    xs = [c[0] for c in pts]
    ys = [c[1] for c in pts]
    return min(xs), min(ys), max(xs), max(ys)


def paint_die_line(painter, width, height, polygons, cut_lines, crease_lines, blank,
                   show_dims=True, show_labels=True, margin=MARGIN):
    """Draw a blank fitted into width x height. Geometry is only scaled, never changed."""
    painter.setRenderHint(QPainter.Antialiasing)
    painter.fillRect(QRectF(0, 0, width, height), QColor(THEME["canvas_bg"]))

    if blank is None or not polygons:
        return
    if not blank.supported:
        painter.setPen(QColor(THEME["line_cut"]))
        painter.drawText(QRectF(0, 0, width, height), Qt.AlignCenter,
                         f"Style {blank.box.style} selected.\n"
                         f"Drawing is currently implemented for 0201 - RSC only.")
        return

    min_x, min_y, max_x, max_y = _bbox(polygons)
    w_bb, h_bb = max(max_x - min_x, 1e-6), max(max_y - min_y, 1e-6)
    scale = min((width - 2 * margin) / w_bb, (height - 2 * margin) / h_bb)
    scale = max(scale, 0.05)
    ox = (width - w_bb * scale) / 2
    oy = (height - h_bb * scale) / 2

    def to_s(x, y):
        return QPointF((x - min_x) * scale + ox, (y - min_y) * scale + oy)

    # --- 1. Cardboard ---
    painter.setPen(Qt.NoPen)
    for p in polygons:
        col = QColor(THEME["cardboard"])
        if p['type'] == 'glue': col = col.darker(110)
        elif p['type'] == 'panel': col = col.lighter(104)
        painter.setBrush(col)
        painter.drawPolygon(QPolygonF([to_s(x, y) for x, y in p['coords']]))

    # --- 2. Scores ---
    pen_sc = QPen(QColor(THEME["line_score"]))
    pen_sc.setWidthF(1.0)
    painter.setPen(pen_sc)
    for line in crease_lines:
        painter.drawPolyline([to_s(*pt) for pt in line])

    # --- 3. Cuts ---
    pen_cut = QPen(QColor(THEME["line_cut"]))
    pen_cut.setWidthF(1.5)
    pen_cut.setCapStyle(Qt.RoundCap)
    painter.setPen(pen_cut)
    for line in cut_lines:
        if len(line) >= 2:
            painter.drawPolyline([to_s(*pt) for pt in line])

    lay = blank.layout
    xs = (0,) + lay.scores + (lay.total_width,)
    font = QFont()
    font.setPointSizeF(8)
    painter.setFont(font)

    if show_labels:
        painter.setPen(QColor(THEME["line_cut"]))
        names = ["Glue Lap", "Panel 1", "Panel 2", "Panel 3", "Panel 4"]
        for name, x_a, x_b in zip(names, xs[:-1], xs[1:]):
            c = to_s((x_a + x_b) / 2, (lay.top_score_y + lay.bottom_score_y) / 2)
            painter.drawText(QRectF(c.x() - 40, c.y() - 8, 80, 16), Qt.AlignCenter, name)

    if show_dims:
        _paint_dims(painter, blank, to_s, min_y, max_y)


def _paint_dims(painter, blank, to_s, min_y, max_y):
    lay = blank.layout
    painter.setPen(QPen(QColor(THEME["line_dim"]), 1))

    def label(pt, text):
        painter.drawText(QRectF(pt.x() - 40, pt.y() - 8, 80, 16), Qt.AlignCenter, text)

    def h_dim(x_a, x_b, y_px, text):
        a, b = to_s(x_a, 0), to_s(x_b, 0)
        painter.drawLine(QPointF(a.x(), y_px), QPointF(b.x(), y_px))
        for p in (a, b):
            painter.drawLine(QPointF(p.x(), y_px - 4), QPointF(p.x(), y_px + 4))
        label(QPointF((a.x() + b.x()) / 2, y_px - 10), text)

    def v_dim(x_px, y_a, y_b, text):
        a, b = to_s(0, y_a), to_s(0, y_b)
        painter.drawLine(QPointF(x_px, a.y()), QPointF(x_px, b.y()))
        for p in (a, b):
            painter.drawLine(QPointF(x_px - 4, p.y()), QPointF(x_px + 4, p.y()))
        label(QPointF(x_px + 30, (a.y() + b.y()) / 2), text)

    top_px = to_s(0, min_y).y()
    bot_px = to_s(0, max_y).y()
    h_dim(0, lay.total_width, top_px - 20, f"{lay.total_width} mm")

    xs = (0,) + lay.scores + (lay.total_width,)
    widths = (lay.glue_lap,) + lay.panels
    for i, (x_a, x_b) in enumerate(zip(xs[:-1], xs[1:])):
        h_dim(x_a, x_b, bot_px + 20 + (12 if i == 0 else 0), f"{widths[i]} mm")

    right_px = to_s(lay.total_width, 0).x()
    v_dim(right_px + 15, lay.top_score_y, lay.bottom_score_y, f"{lay.s2s} mm")

    # Flap heights over panels 2 (outer) and 3 (inner)
    for idx in (1, 2):
        x_mid = (xs[idx + 1] + xs[idx + 2]) / 2
        c = to_s(x_mid, (blank.top_edges[idx] + lay.top_score_y) / 2)
        label(c, f"{blank.flaps.top[idx]} mm")
        c = to_s(x_mid, (blank.bottom_edges[idx] + lay.bottom_score_y) / 2)
        label(c, f"{blank.flaps.bottom[idx]} mm")


def export_svg(path, polygons, cut_lines, crease_lines, blank, margin=MARGIN):
    """Write the die-line to an SVG file at 1 px = 1 mm."""
    min_x, min_y, max_x, max_y = _bbox(polygons)
    w = int(round(max_x - min_x)) + 2 * margin
    h = int(round(max_y - min_y)) + 2 * margin

    gen = QSvgGenerator()
    gen.setFileName(str(path))
    gen.setSize(QSize(w, h))
    gen.setViewBox(QRect(0, 0, w, h))
    gen.setTitle(f"FEFCO {blank.box.style} blank")
    gen.setDescription(blank.spec_line())

    painter = QPainter(gen)
    try:
        paint_die_line(painter, w, h, polygons, cut_lines, crease_lines, blank, margin=margin)
    finally:
        painter.end()
    logger.info("Exported %s (%d x %d mm)", path, blank.layout.total_width, blank.layout.total_height)


# --- CANVAS ---
class DrawingArea2D(QWidget):
    def __init__(self, parent=None):
        super().__init__(parent)
        self.polygons = []
        self.cut_lines = []
        self.crease_lines = []
        self.blank = None
        self.show_dims = True
        self.show_labels = True
        self.setMinimumSize(400, 300)

    def set_data(self, polygons, cut_lines, crease_lines, blank):
        self.polygons = polygons
        self.cut_lines = cut_lines
        self.crease_lines = crease_lines
        self.blank = blank
        self.update()

    def set_display(self, show_dims, show_labels):
        self.show_dims = show_dims
        self.show_labels = show_labels
        self.update()

    def paintEvent(self, event):
        painter = QPainter(self)
        try:
            paint_die_line(painter, self.width(), self.height(), self.polygons, self.cut_lines,
                           self.crease_lines, self.blank, self.show_dims, self.show_labels)
        finally:
            painter.end()


# --- SUMMARY ---
class SummaryPanel(QWidget):
    def __init__(self, parent=None):
        super().__init__(parent)
        self.setStyleSheet(f"background-color: {THEME['bg_panel']}; color: {THEME['fg_text']};")
        layout = QVBoxLayout(self)
        layout.setContentsMargins(8, 6, 8, 6)
        self.lbl_spec = QLabel()
        self.lbl_spec.setStyleSheet("font-family: monospace;")
        self.lbl_spec.setWordWrap(True)
        layout.addWidget(self.lbl_spec)

        row = QHBoxLayout()
        self.lbl_ff = {}
        for key, title in (("length", "FF Length"), ("width", "FF Width"), ("thickness", "FF Thickness")):
            lbl = QLabel()
            row.addWidget(lbl)
            self.lbl_ff[key] = (lbl, title)
        layout.addLayout(row)

    def set_blank(self, blank):
        self.lbl_spec.setText(blank.spec_line())
        ff = blank.folded
        for key, value in (("length", ff.length), ("width", ff.width), ("thickness", ff.thickness)):
            lbl, title = self.lbl_ff[key]
            lbl.setText(f"<b>{title}:</b> {round(value)} mm")


# --- PARAMETERS ---
class ParameterPanel(QWidget):
    params_changed = Signal(dict)

    GAP_FIELDS = (("gap_top_inner", "ti", "Flap gap (Top Inner)"),
                  ("gap_top_outer", "to", "Flap gap (Top Outer)"),
                  ("gap_bot_inner", "bi", "Flap gap (Bottom Inner)"),
                  ("gap_bot_outer", "bo", "Flap gap (Bottom Outer)"))

    def __init__(self, parent=None):
        super().__init__(parent)
        self.last_edited = "none"
        self._user_locks = (False, False, False)
        self.init_ui()

    def init_ui(self):
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)

        scroll = QScrollArea()
        scroll.setWidgetResizable(True)
        scroll.setStyleSheet(f"background-color: {THEME['bg_ui']}; border: none;")

        container = QWidget()
        container.setStyleSheet(f"background-color: {THEME['bg_ui']}; color: {THEME['fg_text']};")
        vbox = QVBoxLayout(container)
        vbox.setAlignment(Qt.AlignTop)

        # 1. Style
        sec = CollapsibleSection("1. Style (FEFCO)", container, expanded=True)
        self.cb_style = sec.add_row("Style:", make_combo([(k, v[0]) for k, v in STYLES.items()]))
        select_data(self.cb_style, DEFAULTS["style"])
        self.cb_style.currentIndexChanged.connect(self.update_ui_state)
        self.cb_style.currentIndexChanged.connect(self.emit_change)
        vbox.addWidget(sec)

        # 2. Internal dimensions
        sec = CollapsibleSection("2. Internal Dimensions", container, expanded=True)
        self.inp_L = sec.add_row("Length (L, mm):", self._spin(DEFAULTS["L"], 1, 5000))
        self.inp_W = sec.add_row("Width (W, mm):", self._spin(DEFAULTS["W"], 1, 5000))
        self.inp_H = sec.add_row("Height (H, mm):", self._spin(DEFAULTS["H"], 1, 5000))
        vbox.addWidget(sec)

        # 3. Board & glue
        sec = CollapsibleSection("3. Board & Glue", container, expanded=True)
        self.cb_flute = sec.add_row("Flute:", make_combo([]))
        self.cb_flute.currentIndexChanged.connect(self.emit_change)
        self.cb_side = sec.add_row("Glue position:", make_combo(
            [("inside", "Inside glue"), ("outside", "Outside glue")]))
        select_data(self.cb_side, DEFAULTS["glue_side"])
        self.cb_side.currentIndexChanged.connect(self.emit_change)
        self.cb_off = sec.add_row("Glue lap off:", make_combo(
            [("small", "Small panel (W)"), ("large", "Large panel (L)")]))
        select_data(self.cb_off, DEFAULTS["glue_off"])
        self.cb_off.currentIndexChanged.connect(self.emit_change)
        self.inp_glue = sec.add_row("Glue lap (mm):", self._spin(DEFAULTS["glue_lap"], 0, 200))
        self.inp_ext = sec.add_row("Extension a (mm):", self._spin(DEFAULTS["glue_ext"], 0, 500, 0.5))
        self.inp_bevel = sec.add_row("Bevel angle (°):", self._spin(DEFAULTS["bevel_deg"], 0, 90, 0.5))
        vbox.addWidget(sec)

        # 4. Slots
        sec = CollapsibleSection("4. Slots", container, expanded=True)
        self.inp_slot = sec.add_row("Slot width (mm):", self._spin(DEFAULTS["slot_width"], 0.5, 100, 0.5))
        vbox.addWidget(sec)

        # 5. Flap gaps
        sec = CollapsibleSection("5. Flap Gaps", container, expanded=True)
        self.inp_gaps = {}
        for key, code, label in self.GAP_FIELDS:
            sb = make_spin(0, -1000, 1000, 0.5)
            sb.valueChanged.connect(lambda _v, c=code: self._on_gap_edit(c))
            self.inp_gaps[key] = sec.add_row(label + ":", sb)
        self.chk_lock_top = sec.add_widget(make_check("Lock top panel heights"))
        self.chk_lock_bottom = sec.add_widget(make_check("Lock bottom panel heights"))
        self.chk_lock_sym = sec.add_widget(make_check("Lock top & bottom (symmetry)"))
        for chk in (self.chk_lock_top, self.chk_lock_bottom, self.chk_lock_sym):
            chk.stateChanged.connect(self.emit_change)
        vbox.addWidget(sec)

        # 6. Display
        sec = CollapsibleSection("6. Display", container)
        self.chk_dims = sec.add_widget(make_check("Show dimensions", True))
        self.chk_labels = sec.add_widget(make_check("Show labels", True))
        for chk in (self.chk_dims, self.chk_labels):
            chk.stateChanged.connect(self.emit_change)
        vbox.addWidget(sec)

        vbox.addStretch()
        scroll.setWidget(container)
        layout.addWidget(scroll)

        self.update_ui_state()

    def _spin(self, val, min_v, max_v, step=1.0):
        sb = make_spin(val, min_v, max_v, step)
        sb.valueChanged.connect(self.emit_change)
        return sb

    def _on_gap_edit(self, code):
        self.last_edited = code
        self.emit_change()

    def set_flutes(self, flutes, current=None):
        current = current or self.cb_flute.currentData() or DEFAULTS["flute"]
        self.cb_flute.blockSignals(True)
        self.cb_flute.clear()
        for f in flutes:
            self.cb_flute.addItem(f"{f['flute']} ({f['thickness']:g} mm)", f["flute"])
        select_data(self.cb_flute, current)
        self.cb_flute.blockSignals(False)

    def set_gaps(self, gaps):
        """Write back the settled gaps without re-triggering a recompute."""
        values = (gaps.top_inner, gaps.top_outer, gaps.bot_inner, gaps.bot_outer)
        for (key, _code, _label), v in zip(self.GAP_FIELDS, values):
            sb = self.inp_gaps[key]
            sb.blockSignals(True)
            sb.setValue(v)
            sb.blockSignals(False)

    def reset_last_edited(self):
        self.last_edited = "none"

    def update_ui_state(self):
        """0201 forces all three locks on; other styles get the user's choice back."""
        locks = (self.chk_lock_top, self.chk_lock_bottom, self.chk_lock_sym)
        forced = self.cb_style.currentData() in SUPPORTED_STYLES
        already_forced = not self.chk_lock_top.isEnabled()
        for chk in locks:
            chk.blockSignals(True)
        if forced and not already_forced:
            self._user_locks = tuple(c.isChecked() for c in locks)
            for c in locks:
                c.setChecked(True)
                c.setEnabled(False)
        elif not forced and already_forced:
            for c, state in zip(locks, self._user_locks):
                c.setChecked(state)
                c.setEnabled(True)
        for chk in locks:
            chk.blockSignals(False)

    def params(self):
        p = {
            'style': self.cb_style.currentData(),
            'L': self.inp_L.value(),
            'W': self.inp_W.value(),
            'H': self.inp_H.value(),
            'flute': self.cb_flute.currentData() or DEFAULTS["flute"],
            'glue_side': self.cb_side.currentData(),
            'glue_off': self.cb_off.currentData(),
            'glue_lap': self.inp_glue.value(),
            'glue_ext': self.inp_ext.value(),
            'bevel_deg': self.inp_bevel.value(),
            'slot_width': self.inp_slot.value(),

            'lock_top': self.chk_lock_top.isChecked(),
            'lock_bottom': self.chk_lock_bottom.isChecked(),
            'lock_symmetry': self.chk_lock_sym.isChecked(),
            'last_edited': self.last_edited,

            'show_dims': self.chk_dims.isChecked(),
            'show_labels': self.chk_labels.isChecked(),
        }
        for key, _code, _label in self.GAP_FIELDS:
            p[key] = self.inp_gaps[key].value()
        return p

    def emit_change(self):
        self.params_changed.emit(self.params())
