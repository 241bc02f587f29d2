"""
Shared page geometry and colour palette for every generated document.
"""

from reportlab.lib.colors import Color


# All document kinds share one page size (points).
PAGE_SIZE = (842.0, 1191.0)
PAGE_MARGIN = 40.0

# Content never encroaches within this many points of the bottom margin.
BOTTOM_RESERVE = 100.0

FONT = "Helvetica"
FONT_BOLD = "Helvetica-Bold"

PRIMARY = Color(0.04, 0.32, 0.55)
SECONDARY = Color(0.95, 0.97, 1)
ACCENT = Color(0.2, 0.6, 0.86)
TEXT = Color(0.2, 0.2, 0.2)
LIGHT_GRAY = Color(0.9, 0.9, 0.9)
WHITE = Color(1, 1, 1)
SUCCESS = Color(0.13, 0.7, 0.33)
WARNING = Color(1, 0.6, 0)
DANGER = Color(0.91, 0.27, 0.2)
BORDER = Color(0.85, 0.85, 0.85)
