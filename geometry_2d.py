"""
Die-line geometry for FEFCO 0201 (RSC) blanks.

Everything is in mm. The origin is the top-left corner of the blank's bounding
box, x grows to the right and y grows downwards, like the canvas.

Pipeline: allowances -> panel layout -> flap heights -> glue-lap chamfer ->
slots -> cutting boundaries. Each step is a pure function returning a frozen
snapshot; BlankModel runs them all from the flat params dict of the UI.
"""
import logging
import math
from dataclasses import dataclass, replace
from enum import Enum

from allowances import AllowanceRow, AllowanceTable, normalize_side, resolve, thickness_for_flute
from config import DEFAULTS, STYLES, SUPPORTED_STYLES

logger = logging.getLogger(__name__)

FLAP_CLEARANCE = 2           # mm taken off every flap before halving
MIN_SLOT_WIDTH = 0.5
SLOT_EDGE_CLEARANCE = 0.75   # material kept between a slot and the sheet edge
BEVEL_MIN_DEG = 0.1
BEVEL_MAX_DEG = 89.9


def round_half_up(x):
    return int(math.floor(x + 0.5))


def clamp(v, lo, hi):
    return max(lo, min(hi, v))


# ==========================================
# SNAPSHOTS
# ==========================================
@dataclass(frozen=True)
class BoxSpec:
    L: float
    W: float
    H: float
    thickness: float
    style: str = "0201"


@dataclass(frozen=True)
class GlueConfig:
    side: str = "outside"
    off: str = "small"          # "small": lap on a W panel, "large": on an L panel
    lap_width: float = 28.0
    extension_a: float = 0.0    # > 0 overrides the bevel rise
    bevel_deg: float = 24.0


class GapEdit(Enum):
    NONE = "none"
    TOP_INNER = "ti"
    TOP_OUTER = "to"
    BOT_INNER = "bi"
    BOT_OUTER = "bo"


@dataclass(frozen=True)
class GapConfig:
    top_inner: float = 0.0
    top_outer: float = 0.0
    bot_inner: float = 0.0
    bot_outer: float = 0.0
    lock_top: bool = False
    lock_bottom: bool = False
    lock_symmetry: bool = False
    last_edited: GapEdit = GapEdit.NONE


@dataclass(frozen=True)
class PanelLayout:
    panels: tuple
    roles: tuple
    adds: tuple
    glue_lap: int
    total_width: int
    s2s: int
    reference_flap: int
    total_height: int

    @property
    def scores(self):
        """x of the glue score followed by the three panel scores."""
        xs = [self.glue_lap]
        for w in self.panels[:-1]:
            xs.append(xs[-1] + w)
        return tuple(xs)

    @property
    def top_score_y(self):
        return self.reference_flap

    @property
    def bottom_score_y(self):
        return self.reference_flap + self.s2s

    def panel_index_at(self, x):
        # The glue lap belongs to panel 0
        s = self.scores
        if x < s[1]: return 0
        if x < s[2]: return 1
        if x < s[3]: return 2
        return 3


@dataclass(frozen=True)
class FlapHeights:
    top: tuple      # one per panel: inner, outer, inner, outer
    bottom: tuple
    gaps: GapConfig  # gaps after lock propagation


@dataclass(frozen=True)
class ChamferGeometry:
    start_x: float
    anchor_top_y: float
    anchor_bot_y: float
    top_y: float
    bot_y: float
    outer_x: float = 0.0
    meet: tuple = None   # where the two bevels cross when they do not reach the edge apart

    @property
    def has_vertical(self):
        return self.bot_y > self.top_y


@dataclass(frozen=True)
class SlotSpec:
    width: float
    half: float
    intervals: tuple   # ((x0, x1), ...) ascending
    centres: tuple     # score x of each interval


@dataclass(frozen=True)
class FoldedFlat:
    length: int
    width: int
    thickness: float


# ==========================================
# 1. PANEL LAYOUT
# ==========================================
def layout_panels(box, glue, allowance):
    roles = ("L", "W", "L", "W") if glue.off == "large" else ("W", "L", "W", "L")
    base = {"L": box.L, "W": box.W}
    adds = allowance.adds
    # Allowances follow the panel position, not the L/W role
    panels = tuple(max(0, round_half_up(base[r] + a)) for r, a in zip(roles, adds))
    glue_lap = max(0, round_half_up(glue.lap_width))
    s2s = max(0, round_half_up(box.H + allowance.h1))
    ref_flap = max(0, round_half_up(box.W / 2))
    return PanelLayout(
        panels=panels, roles=roles, adds=tuple(adds), glue_lap=glue_lap,
        total_width=glue_lap + sum(panels), s2s=s2s, reference_flap=ref_flap,
        total_height=2 * ref_flap + s2s,
    )


# ==========================================
# 2. FLAP HEIGHTS
# ==========================================
def seed_gaps(layout, thickness, lock_top=False, lock_bottom=False, lock_symmetry=False):
    """Starting gaps: inner flaps sized to the reference flap, outer gaps closed."""
    inner = max(0, layout.panels[1] - 2 * layout.reference_flap - thickness)
    return GapConfig(
        top_inner=inner, top_outer=0.0, bot_inner=inner, bot_outer=0.0,
        lock_top=lock_top, lock_bottom=lock_bottom, lock_symmetry=lock_symmetry,
    )


def propagate_gaps(gaps, delta):
    """
    Apply the locks to a gap edit. lock_top/lock_bottom keep
    outer = inner + delta on their edge, symmetry copies the edited edge onto
    the other one and is applied again last, so with every lock on the bottom
    mirrors the top exactly.
    """
    ti, to, bi, bo = gaps.top_inner, gaps.top_outer, gaps.bot_inner, gaps.bot_outer
    src = gaps.last_edited

    bottom_edited = src in (GapEdit.BOT_INNER, GapEdit.BOT_OUTER)
    if gaps.lock_symmetry:
        if bottom_edited: ti, to = bi, bo
        else: bi, bo = ti, to

    outer_edited = src in (GapEdit.TOP_OUTER, GapEdit.BOT_OUTER)
    if gaps.lock_top:
        if outer_edited: ti = to - delta
        else: to = ti + delta
    if gaps.lock_bottom:
        if outer_edited: bi = bo - delta
        else: bo = bi + delta

    if gaps.lock_symmetry:
        bi, bo = ti, to

    return replace(gaps, top_inner=ti, top_outer=to, bot_inner=bi, bot_outer=bo)


def flap_height(panel_mm, gap, flap_allowance):
    return max(0, math.floor((panel_mm - FLAP_CLEARANCE - gap) / 2 + flap_allowance))


def solve_flaps(p2, p3, gaps, flap_allowance):
    """Flap heights per panel; panels 1 and 3 carry the inner flaps (sized on P2)."""
    settled = propagate_gaps(gaps, p3 - p2)
    ti = flap_height(p2, settled.top_inner, flap_allowance)
    to = flap_height(p3, settled.top_outer, flap_allowance)
    bi = flap_height(p2, settled.bot_inner, flap_allowance)
    bo = flap_height(p3, settled.bot_outer, flap_allowance)
    return FlapHeights(top=(ti, to, ti, to), bottom=(bi, bo, bi, bo), gaps=settled)


def flap_edges(layout, flaps):
    top = tuple(layout.top_score_y - h for h in flaps.top)
    bottom = tuple(layout.bottom_score_y + h for h in flaps.bottom)
    return top, bottom


def flap_edge_fn(layout, edges):
    return lambda x: edges[layout.panel_index_at(x)]


# ==========================================
# 3. GLUE-LAP CHAMFER
# ==========================================
def chamfer(sheet_outer_x, x_start, top_edge_y, bot_edge_y, bevel_deg, extension_a,
            top_bound, bottom_bound):
    run = max(0.0, x_start - sheet_outer_x)
    angle = math.radians(clamp(bevel_deg, BEVEL_MIN_DEG, BEVEL_MAX_DEG))
    vertical = extension_a if extension_a > 0 else run * math.tan(angle)

    top_y = clamp(top_edge_y + vertical, top_bound, bottom_bound)
    bot_y = clamp(bot_edge_y - vertical, top_bound, bottom_bound)

    meet = None
    if bot_y <= top_y:
        # Bevels cross before the edge: they end where they intersect
        denom = (top_y - top_edge_y) - (bot_y - bot_edge_y)
        if run > 0 and denom > 0:
            u = clamp((bot_edge_y - top_edge_y) / denom, 0.0, 1.0)
            meet = (x_start - run * u, top_edge_y + (top_y - top_edge_y) * u)
        else:
            # No run to bevel along: the edge stays straight
            meet = (sheet_outer_x, top_edge_y)

    return ChamferGeometry(
        start_x=x_start, anchor_top_y=top_edge_y, anchor_bot_y=bot_edge_y,
        top_y=top_y, bot_y=bot_y, outer_x=sheet_outer_x, meet=meet,
    )


# ==========================================
# 4. SLOTS
# ==========================================
def plan_slots(slot_width, scores, left_bound):
    """
    One slot per score. The half-width is capped so a slot keeps at least half
    of the material between its score and the sheet edge; scores left with no
    room get no slot.
    """
    width = max(MIN_SLOT_WIDTH, slot_width)
    half = width / 2
    intervals, centres = [], []
    for x in sorted(scores):
        h = min(half, (x - left_bound) / 2 - SLOT_EDGE_CLEARANCE)
        if h <= 0:
            logger.debug("No room for a slot at x=%s", x)
            continue
        intervals.append((x - h, x + h))
        centres.append(x)
    return SlotSpec(width=width, half=half, intervals=tuple(intervals), centres=tuple(centres))


# ==========================================
# 5. CUTTING BOUNDARIES
# ==========================================
def build_boundary(is_top, edge_at, score_y, slots, right_bound, start_x=None):
    """
    Cut line along one flap edge, notched down to the score at every slot.
    A flap edge never crosses its score line onto the body.
    """
    def y_at(x):
        e = edge_at(x)
        return min(e, score_y) if is_top else max(e, score_y)

    if start_x is None:
        start_x = slots[0][0] if slots else 0.0

    pts = [(start_x, y_at(start_x))]

    def push(p):
        if p != pts[-1]:
            pts.append(p)

    for a, b in slots:
        push((a, y_at(a)))
        push((a, score_y))
        push((b, score_y))
        push((b, y_at(b)))
    push((right_bound, y_at(right_bound)))
    return tuple(pts)


def folded_flat(layout, flaps, thickness):
    return FoldedFlat(
        length=layout.panels[1] + layout.panels[2],
        width=max(flaps.top) + layout.s2s + max(flaps.bottom),
        thickness=2 * thickness,
    )


# ==========================================
# BLANK
# ==========================================
@dataclass(frozen=True)
class Blank:
    box: BoxSpec
    glue: GlueConfig
    allowance: AllowanceRow
    layout: PanelLayout
    flaps: FlapHeights
    top_edges: tuple
    bottom_edges: tuple
    slots: SlotSpec
    chamfer: ChamferGeometry
    top_path: tuple
    bottom_path: tuple
    folded: FoldedFlat

    @property
    def supported(self):
        return self.box.style in SUPPORTED_STYLES

    @property
    def gaps(self):
        return self.flaps.gaps

    @property
    def glue_slot(self):
        if self.slots.centres and self.slots.centres[0] == self.layout.glue_lap:
            return self.slots.intervals[0]
        return None

    def _right_edge(self):
        R = self.layout.total_width
        return [self.top_path[-1], (R, self.bottom_path[-1][1])]

    def _left_edge(self):
        """Glue-lap side, from the top path start round to the bottom path start."""
        ch = self.chamfer
        if ch.meet is not None:
            ends = (self.top_path[0], self.bottom_path[0])
            if ch.meet in ends:
                return list(ends)
            return [self.top_path[0], ch.meet, self.bottom_path[0]]
        pts = [self.top_path[0], (ch.outer_x, ch.top_y)]
        if ch.has_vertical:
            pts.append((ch.outer_x, ch.bot_y))
        pts.append(self.bottom_path[0])
        return pts

    def outline(self):
        """Closed outline of the sheet (clockwise, first point not repeated)."""
        pts = list(self.top_path) + [self._right_edge()[1]]
        pts += list(reversed(self.bottom_path))[1:]
        pts += list(reversed(self._left_edge()))[1:-1]
        return pts

    def cut_lines(self):
        lines = [list(self.top_path), list(self.bottom_path), self._right_edge()]
        left = self._left_edge()
        lines.extend([a, b] for a, b in zip(left, left[1:]))
        return lines

    def spec_line(self):
        b, lay, a = self.box, self.layout, self.allowance
        return (f"FEFCO {b.style} | internal L={b.L:g} W={b.W:g} H={b.H:g} mm | "
                f"flute={a.flute} t={b.thickness:g} | glue={self.glue.side} lap={lay.glue_lap} | "
                f"P={'/'.join(str(p) for p in lay.panels)} | "
                f"S2S = H + H1 = {lay.s2s} mm | sheet={lay.total_width}x{lay.total_height} mm")

    def score_lines(self):
        lay = self.layout
        y_top, y_bot = lay.top_score_y, lay.bottom_score_y
        x_left = self.chamfer.outer_x
        lines = [[(x_left, y_top), (lay.total_width, y_top)],
                 [(x_left, y_bot), (lay.total_width, y_bot)]]
        for x in lay.scores:
            lines.append([(x, y_top), (x, y_bot)])
        return lines


def _param_float(params, key, default, minimum=None):
    try:
        v = float(params.get(key, default))
    except (TypeError, ValueError):
        v = default
    if not math.isfinite(v):
        v = default
    if minimum is not None and v < minimum:
        v = minimum
    return v


class BlankModel:
    """Flat UI params -> Blank. Bad numbers are replaced by defaults, never raised."""

    GAP_KEYS = ("gap_top_inner", "gap_top_outer", "gap_bot_inner", "gap_bot_outer")

    def __init__(self, params, table=None):
        self.p = params or {}
        self.table = table if table is not None else AllowanceTable.defaults()

    def box_spec(self):
        p = self.p
        style = str(p.get("style", DEFAULTS["style"]))
        t = _param_float(p, "thickness", float("nan"))
        if not t > 0:
            t = thickness_for_flute(p.get("flute", DEFAULTS["flute"]), self.table.flutes)
        if t is None or not t > 0:
            t = DEFAULTS["thickness"]
        return BoxSpec(
            L=_param_float(p, "L", DEFAULTS["L"], 0.0),
            W=_param_float(p, "W", DEFAULTS["W"], 0.0),
            H=_param_float(p, "H", DEFAULTS["H"], 0.0),
            thickness=t,
            style=style,
        )

    def glue_config(self):
        p = self.p
        off = p.get("glue_off", DEFAULTS["glue_off"])
        return GlueConfig(
            side=normalize_side(p.get("glue_side", DEFAULTS["glue_side"])),
            off="large" if off == "large" else "small",
            lap_width=_param_float(p, "glue_lap", DEFAULTS["glue_lap"], 0.0),
            extension_a=_param_float(p, "glue_ext", DEFAULTS["glue_ext"], 0.0),
            bevel_deg=_param_float(p, "bevel_deg", DEFAULTS["bevel_deg"]),
        )

    def gap_config(self, layout, thickness):
        p = self.p
        locks = dict(
            lock_top=bool(p.get("lock_top", False)),
            lock_bottom=bool(p.get("lock_bottom", False)),
            lock_symmetry=bool(p.get("lock_symmetry", False)),
        )
        if any(p.get(k) is None for k in self.GAP_KEYS):
            return seed_gaps(layout, thickness, **locks)
        try:
            edit = GapEdit(p.get("last_edited") or "none")
        except ValueError:
            edit = GapEdit.NONE
        return GapConfig(
            top_inner=_param_float(p, "gap_top_inner", 0.0),
            top_outer=_param_float(p, "gap_top_outer", 0.0),
            bot_inner=_param_float(p, "gap_bot_inner", 0.0),
            bot_outer=_param_float(p, "gap_bot_outer", 0.0),
            last_edited=edit,
            **locks,
        )

    def style_key(self, style):
        if style not in STYLES:
            logger.warning("Unknown style %r, using RSC allowances", style)
            return "rsc"
        return STYLES[style][1]

    def compute(self):
        box = self.box_spec()
        glue = self.glue_config()
        flute = self.p.get("flute", DEFAULTS["flute"])
        allowance = resolve(self.table, glue.side, flute, box.thickness, self.style_key(box.style))

        layout = layout_panels(box, glue, allowance)
        gaps = self.gap_config(layout, box.thickness)
        flaps = solve_flaps(layout.panels[1], layout.panels[2], gaps, allowance.flap)
        top_edges, bottom_edges = flap_edges(layout, flaps)
        top_at = flap_edge_fn(layout, top_edges)
        bot_at = flap_edge_fn(layout, bottom_edges)

        slot_width = _param_float(self.p, "slot_width", DEFAULTS["slot_width"])
        slots = plan_slots(slot_width, layout.scores, 0.0)
        has_glue_slot = bool(slots.centres) and slots.centres[0] == layout.glue_lap
        x_start = slots.intervals[0][0] if has_glue_slot else layout.glue_lap

        top_path = build_boundary(True, top_at, layout.top_score_y, slots.intervals,
                                  layout.total_width, start_x=x_start)
        bottom_path = build_boundary(False, bot_at, layout.bottom_score_y, slots.intervals,
                                     layout.total_width, start_x=x_start)

        ch = chamfer(0.0, x_start, top_path[0][1], bottom_path[0][1],
                     glue.bevel_deg, glue.extension_a, 0.0, layout.total_height)

        if box.style not in SUPPORTED_STYLES:
            logger.info("Style %s is drawn with the 0201 geometry", box.style)

        return Blank(
            box=box, glue=glue, allowance=allowance, layout=layout, flaps=flaps,
            top_edges=top_edges, bottom_edges=bottom_edges, slots=slots, chamfer=ch,
            top_path=top_path, bottom_path=bottom_path,
            folded=folded_flat(layout, flaps, box.thickness),
        )

    def get_data(self, blank=None):
        """Polygons, cut lines and crease lines, as DrawingArea2D expects them."""
        blank = blank or self.compute()
        polygons = [{'id': 'poly_blank', 'type': 'blank', 'coords': blank.outline()}]
        lay = blank.layout
        xs = (0,) + lay.scores + (lay.total_width,)
        for i, (x_a, x_b) in enumerate(zip(xs[:-1], xs[1:])):
            kind = 'glue' if i == 0 else 'panel'
            body = [(x_a, lay.top_score_y), (x_b, lay.top_score_y),
                    (x_b, lay.bottom_score_y), (x_a, lay.bottom_score_y)]
            polygons.append({'id': f'poly_{kind}_{i}', 'type': kind, 'coords': body})
        return polygons, blank.cut_lines(), blank.score_lines()
