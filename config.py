import os
from pathlib import Path

THEME = {
    "bg_ui": "#2E2E2E",
    "bg_panel": "#3C3F41",
    "fg_text": "#F0F0F0",
    "bg_draw": "#404040",
    "canvas_bg": "#F5F5F5",

    # Die-line
    "cardboard": "#E0C0A0",
    "line_cut": "#000000",
    "line_score": "#C62828",
    "line_dim": "#2E7D32",
    "highlight": "#81D4FA",
}

# Form defaults (mm, degrees)
DEFAULTS = {
    "style": "0201",
    "L": 267.0,
    "W": 120.0,
    "H": 80.0,
    "thickness": 3.0,
    "flute": "B",
    "glue_side": "outside",
    "glue_off": "small",
    "glue_lap": 28.0,
    "glue_ext": 0.0,
    "bevel_deg": 24.0,
    "slot_width": 9.0,
}

# FEFCO 0200 family: code -> (label, allowance key)
STYLES = {
    "0200": ("0200 - HSC (Half Slotted Case)", "hsc"),
    "0201": ("0201 - RSC (Regular Slotted Case)", "rsc"),
    "0202": ("0202", "rsc"),
    "0203": ("0203 - FOL (Full Overlap)", "ffsc"),
    "0204": ("0204", "rsc"),
    "0205": ("0205", "rsc"),
    "0206": ("0206", "rsc"),
}
SUPPORTED_STYLES = ("0201",)


def settings_dir():
    """Directory holding flutes.json and panel_allowances.json."""
    env = os.environ.get("BOXBLANK_HOME")
    if env:
        return Path(env)
    return Path.home() / ".boxblank"


# Log output; BOXBLANK_LOG_LEVEL overrides the level
LOGGING = {
    "level": "INFO",
    "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    "datefmt": "%H:%M:%S",
    "file_name": "boxblank.log",
}


def log_level():
    name = os.environ.get("BOXBLANK_LOG_LEVEL", LOGGING["level"]).upper()
    return name if name in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL") else LOGGING["level"]
