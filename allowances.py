"""
Flute and panel-allowance tables.

The allowance table is keyed by glue side ("inside"/"outside") and flute code.
Each row keeps the nested shape it is persisted with:

    {"flute": "B",
     "panels": {"p1": 5, "p2": 3, "p3": 3, "p4": 0, "gl": 28},
     "hsc":  {"flap": 0, "h1": 3},
     "rsc":  {"flap": 0, "h1": 6},
     "ffsc": {"flap": 0, "h1": 8}}

`resolve` turns one row into a flat AllowanceRow for the geometry engine.
"""
import copy
import json
import logging
import math
import re
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType

logger = logging.getLogger(__name__)

GLUE_SIDES = ("inside", "outside")
STYLE_GROUPS = ("hsc", "rsc", "ffsc")

DEFAULT_FLUTES = [
    {"flute": "E", "thickness": 2.0},
    {"flute": "R", "thickness": 2.5},
    {"flute": "B", "thickness": 3.0},
    {"flute": "C", "thickness": 4.0},
    {"flute": "A", "thickness": 5.0},
    {"flute": "BE", "thickness": 5.0},
    {"flute": "BR", "thickness": 5.5},
    {"flute": "BC", "thickness": 7.0},
    {"flute": "AC", "thickness": 9.0},
]


def _row(flute, p1, p2, p3, p4, gl, hsc, rsc, ffsc):
    return {
        "flute": flute,
        "panels": {"p1": p1, "p2": p2, "p3": p3, "p4": p4, "gl": gl},
        "hsc": {"flap": hsc[0], "h1": hsc[1]},
        "rsc": {"flap": rsc[0], "h1": rsc[1]},
        "ffsc": {"flap": ffsc[0], "h1": ffsc[1]},
    }


# Manufacturer defaults, (flap, h1) per style group
DEFAULT_PANEL_ALLOWANCES = {
    "inside": [
        _row("E", 2, 2, 2, 0, 28, (0, 2), (0, 3), (0, 6)),
        _row("R", 2, 2, 3, 0, 28, (0, 3), (0, 5), (0, 7)),
        _row("B", 3, 3, 3, 0, 28, (0, 3), (0, 6), (0, 8)),
        _row("C", 4, 4, 4, 1, 28, (1, 4), (1, 8), (1, 12)),
        _row("A", 5, 5, 5, 2, 30, (3, 5), (3, 10), (1, 14)),
        _row("BE", 5, 5, 5, 2, 30, (3, 5), (3, 10), (1, 14)),
        _row("BR", 5, 5, 5, 2, 30, (3, 5), (3, 11), (1, 15)),
        _row("BC", 7, 7, 7, 2, 35, (4, 7), (4, 14), (0, 20)),
        _row("AC", 10, 10, 10, 7, 35, (6, 10), (6, 20), (4, 28)),
    ],
    "outside": [
        _row("E", 2, 2, 2, 0, 28, (0, 2), (0, 3), (0, 6)),
        _row("R", 4, 2, 2, 0, 28, (0, 3), (0, 5), (0, 7)),
        _row("B", 5, 3, 3, 0, 28, (0, 3), (0, 6), (0, 8)),
        _row("C", 6, 4, 4, 0, 28, (1, 4), (1, 8), (0, 12)),
        _row("A", 8, 5, 5, 0, 30, (3, 5), (3, 10), (1, 14)),
        _row("BE", 8, 5, 5, 0, 30, (3, 5), (3, 10), (1, 14)),
        _row("BR", 8, 5, 5, 0, 30, (3, 5), (3, 11), (1, 15)),
        _row("BC", 12, 7, 7, -2, 35, (4, 7), (4, 14), (0, 20)),
        _row("AC", 17, 10, 10, 0, 35, (6, 10), (6, 20), (4, 28)),
    ],
}

# Last resort when a side has no usable row at all
FALLBACK_FLUTE = "B"


def to_number(value, default=0.0):
    if value is None or value == "":
        return default
    try:
        num = float(value)
    except (TypeError, ValueError):
        return default
    return num if math.isfinite(num) else default


def normalize_flute(flute):
    return str(flute or "").upper().strip()


def normalize_side(side):
    s = str(side or "").lower().strip()
    if s not in GLUE_SIDES:
        logger.warning("Unknown glue side %r, using 'outside'", side)
        return "outside"
    return s


# --- FLUTE TABLE ---
def sanitize_flutes(table):
    """Upper-case codes, drop rows without a code or thickness, last duplicate wins."""
    if not isinstance(table, list):
        return copy.deepcopy(DEFAULT_FLUTES)
    by_flute = {}
    for r in table:
        if not isinstance(r, dict):
            continue
        code = normalize_flute(r.get("flute"))
        th = to_number(r.get("thickness"), None)
        if not code or th is None:
            continue
        by_flute[code] = {"flute": code, "thickness": th}
    return list(by_flute.values())


def thickness_for_flute(flute, flutes):
    code = normalize_flute(flute)
    for r in flutes or []:
        if r["flute"] == code:
            return float(r["thickness"])
    return None


# --- ALLOWANCE ROWS ---
def make_blank_row(flute=""):
    return _row(normalize_flute(flute), 0, 0, 0, 0, 0, (0, 0), (0, 0), (0, 0))


def sanitize_row(row):
    row = row if isinstance(row, dict) else {}
    panels = row.get("panels") or {}
    clean = {
        "flute": normalize_flute(row.get("flute")),
        "panels": {k: to_number(panels.get(k)) for k in ("p1", "p2", "p3", "p4", "gl")},
    }
    for group in STYLE_GROUPS:
        g = row.get(group) or {}
        clean[group] = {"flap": to_number(g.get("flap")), "h1": to_number(g.get("h1"))}
    return clean


def _rows_by_flute(rows):
    out = {}
    for r in rows or []:
        clean = sanitize_row(r)
        out[clean["flute"]] = clean
    return out


def defaults_from_flutes(flutes):
    """One default (or blank) row per flute of the flute table, per side."""
    result = {}
    for side in GLUE_SIDES:
        known = _rows_by_flute(DEFAULT_PANEL_ALLOWANCES[side])
        result[side] = [known.get(f["flute"]) or make_blank_row(f["flute"]) for f in flutes]
    return result


def merge_with_defaults(stored, flutes):
    """Stored rows win; defaults and blank rows fill in missing flutes."""
    stored = stored if isinstance(stored, dict) else {}
    defaults = defaults_from_flutes(flutes)
    merged = {}
    for side in GLUE_SIDES:
        by_flute = _rows_by_flute(stored.get(side) or [])
        for d in defaults[side]:
            by_flute.setdefault(d["flute"], d)
        for f in flutes:
            by_flute.setdefault(f["flute"], make_blank_row(f["flute"]))
        merged[side] = list(by_flute.values())
    return merged


class AllowanceTable:
    """Read-only snapshot of the allowance table, shared by one computation pass."""

    def __init__(self, data, flutes=None):
        self.flutes = tuple(MappingProxyType(dict(f)) for f in (flutes or DEFAULT_FLUTES))
        rows = {}
        for side in GLUE_SIDES:
            rows[side] = MappingProxyType(_rows_by_flute((data or {}).get(side) or []))
        self._rows = MappingProxyType(rows)

    @classmethod
    def defaults(cls, flutes=None):
        flutes = flutes or DEFAULT_FLUTES
        return cls(defaults_from_flutes(flutes), flutes)

    def lookup(self, side, flute):
        row = self._rows[normalize_side(side)].get(normalize_flute(flute))
        return copy.deepcopy(row) if row is not None else None

    def rows(self, side):
        return [copy.deepcopy(r) for r in self._rows[normalize_side(side)].values()]

    def to_dict(self):
        return {side: self.rows(side) for side in GLUE_SIDES}


@dataclass(frozen=True)
class AllowanceRow:
    flute: str
    p1: float
    p2: float
    p3: float
    p4: float
    h1: float
    flap: float
    glue_lap: float = 0.0

    @property
    def adds(self):
        return (self.p1, self.p2, self.p3, self.p4)


def _norm_key(key):
    return re.sub(r"[^a-z0-9]", "", str(key).lower())


def _flatten(obj, path=()):
    """(path tokens, number) pairs in row order; non-numeric leaves are skipped."""
    for k, v in obj.items():
        nk = _norm_key(k)
        if isinstance(v, dict):
            yield from _flatten(v, path + (nk,))
            continue
        if isinstance(v, bool):
            continue
        num = to_number(v, None)
        if num is None:
            continue
        yield path + (nk,), num


def find_allowance(row, suffix, style_key="rsc"):
    """
    Deterministic walk for "h1"/"flap": a value whose path mentions the style
    key (rsc.h1, rsc_h1, rscAllowances.h1) wins, then an exact key, then any
    key ending with the suffix. Returns None when nothing matches.
    """
    leaves = list(_flatten(row or {}))
    for path, num in leaves:
        if style_key in "/".join(path) and path[-1].endswith(suffix):
            return num
    for path, num in leaves:
        if path[-1] == suffix:
            return num
    for path, num in leaves:
        if path[-1].endswith(suffix):
            return num
    return None


def _nearest_tier_row(table, side, flute, thickness):
    target = thickness_for_flute(flute, table.flutes)
    if target is None:
        target = thickness
    best, best_d = None, None
    for r in table.rows(side):
        th = thickness_for_flute(r["flute"], table.flutes)
        if th is None or target is None:
            continue
        d = abs(th - target)
        if best_d is None or d < best_d:
            best, best_d = r, d
    return best


def resolve(table, side, flute, thickness, style_key="rsc"):
    """Allowances for (glue side, flute); never fails."""
    side = normalize_side(side)
    code = normalize_flute(flute)
    row = table.lookup(side, code) if table is not None else None
    if row is None and table is not None:
        row = _nearest_tier_row(table, side, code, thickness)
        if row is not None:
            logger.warning("No %s allowances for flute %r, using thickness tier %r",
                           side, code, row["flute"])
    if row is None:
        row = sanitize_row(_rows_by_flute(DEFAULT_PANEL_ALLOWANCES[side])[FALLBACK_FLUTE])
        logger.warning("No %s allowances for flute %r, using %s-flute defaults",
                       side, code, FALLBACK_FLUTE)

    h1 = find_allowance(row, "h1", style_key)
    flap = find_allowance(row, "flap", style_key)
    panels = row.get("panels") or {}
    return AllowanceRow(
        flute=row.get("flute") or code,
        p1=to_number(panels.get("p1")),
        p2=to_number(panels.get("p2")),
        p3=to_number(panels.get("p3")),
        p4=to_number(panels.get("p4")),
        h1=h1 if h1 is not None else 2 * thickness,
        flap=flap if flap is not None else 0.0,
        glue_lap=to_number(panels.get("gl")),
    )


# --- PERSISTENCE ---
class SettingsStore:
    """JSON files for the flute table and the allowance table."""

    FLUTES_FILE = "flutes.json"
    ALLOWANCES_FILE = "panel_allowances.json"

    def __init__(self, directory):
        self.directory = Path(directory)

    def _read(self, name):
        path = self.directory / name
        if not path.exists():
            return None
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)

    def _write(self, name, data):
        self.directory.mkdir(parents=True, exist_ok=True)
        with open(self.directory / name, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)

    def load_flutes(self):
        try:
            raw = self._read(self.FLUTES_FILE)
        except (OSError, ValueError):
            logger.exception("Could not read %s, using defaults", self.FLUTES_FILE)
            return copy.deepcopy(DEFAULT_FLUTES)
        if raw is None:
            return copy.deepcopy(DEFAULT_FLUTES)
        clean = sanitize_flutes(raw)
        return clean or copy.deepcopy(DEFAULT_FLUTES)

    def save_flutes(self, flutes):
        clean = sanitize_flutes(flutes)
        self._write(self.FLUTES_FILE, clean)
        return clean

    def load_allowances(self, flutes):
        try:
            raw = self._read(self.ALLOWANCES_FILE)
        except (OSError, ValueError):
            logger.exception("Could not read %s, restoring defaults", self.ALLOWANCES_FILE)
            raw = None
        if raw is None:
            return self.reset_allowances(flutes)
        return AllowanceTable(merge_with_defaults(raw, flutes), flutes)

    def save_allowances(self, data, flutes):
        if isinstance(data, AllowanceTable):
            data = data.to_dict()
        clean = {side: [sanitize_row(r) for r in (data.get(side) or [])] for side in GLUE_SIDES}
        self._write(self.ALLOWANCES_FILE, clean)
        return AllowanceTable(clean, flutes)

    def reset_allowances(self, flutes):
        data = defaults_from_flutes(flutes)
        self._write(self.ALLOWANCES_FILE, data)
        return AllowanceTable(data, flutes)
