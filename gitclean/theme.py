"""Shared visual constants and helpers for gitclean."""

from __future__ import annotations

from typing import Optional

from rich.style import Style
from rich.text import Text

# ── Color Palette (GitHub Dark + Neon Accents) ──────────────────────────

SURFACE = "#161b22"
BORDER = "#30363d"
MUTED = "#8b949e"

CYAN = "#58a6ff"
GREEN = "#39d353"
YELLOW = "#e3b341"
RED = "#f85149"

# Per-section accent colors
ACCENT_CLEANED = GREEN
ACCENT_SKIPPED = YELLOW
ACCENT_ERRORS = RED

# ── ASCII Banner ────────────────────────────────────────────────────────

BANNER = r"""
       _ _         _
  __ _(_) |_   ___| | ___  __ _ _ __
 / _` | | __| / __| |/ _ \/ _` | '_ \
| (_| | | |_ | (__| |  __/ (_| | | | |
 \__, |_|\__| \___|_|\___|\__,_|_| |_|
 |___/"""

TAGLINE = "sweep every repo under a folder"

# ── Stat Icons ──────────────────────────────────────────────────────────

ICON_ROOT = "📂"
ICON_FOUND = "📦"
ICON_CLEANED = "🧹"
ICON_SKIPPED = "⏭"
ICON_ERROR = "⚠"
ICON_DISK = "💾"
ICON_CLOCK = "⏱"

SIZE_UNITS = ["B", "KB", "MB", "GB", "TB"]


def format_size(num_bytes: Optional[int]) -> str:
    """Human-readable byte count; None renders as 'not computed'."""
    if num_bytes is None:
        return "not computed"
    size = float(num_bytes)
    for unit in SIZE_UNITS:
        if size < 1024 or unit == SIZE_UNITS[-1]:
            if unit == "B":
                return f"{int(size)} B"
            return f"{size:.1f} {unit}"
        size /= 1024
    return f"{num_bytes} B"


def format_duration(seconds: float) -> str:
    """Format a duration as '1h 02m 03s', '2m 05s' or '3.4s'."""
    if seconds < 60:
        return f"{seconds:.1f}s"
    minutes, secs = divmod(int(round(seconds)), 60)
    hours, minutes = divmod(minutes, 60)
    if hours:
        return f"{hours}h {minutes:02d}m {secs:02d}s"
    return f"{minutes}m {secs:02d}s"


def ratio_bar(part: int, whole: int, width: int = 20, color: str = GREEN) -> Text:
    """Render part/whole as a filled bar."""
    filled = int(part / max(whole, 1) * width)
    text = Text()
    text.append("█" * filled, style=Style(color=color))
    text.append("░" * (width - filled), style=Style(color=BORDER))
    return text


# ── Banner Rendering ────────────────────────────────────────────────────

def render_banner() -> Text:
    """Render the gitclean ASCII banner as styled Rich Text."""
    text = Text(justify="center")
    for line in BANNER.strip("\n").split("\n"):
        text.append(line + "\n", style=Style(color=GREEN, bold=True))
    text.append(f"  {TAGLINE}\n", style=Style(color=MUTED, italic=True))
    return text
