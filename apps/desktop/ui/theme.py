"""
Design system theme module for the fullscreen launcher.
Provides color palette, spacing tokens, typography, and the QSS generator.
"""

from __future__ import annotations

# Design tokens: spacing (8px grid)
SPACING = {
    "xs": "4px",
    "sm": "8px",
    "md": "12px",
    "lg": "16px",
    "xl": "24px",
    "2xl": "32px",
}

# Design tokens: typography
TYPOGRAPHY = {
    "font_family": "Inter, Cantarell, DejaVu Sans, sans-serif",
    "font_size_sm": "14px",
    "font_size_base": "17px",
    "font_size_lg": "22px",
    "font_size_xl": "28px",
    "font_size_2xl": "40px",
    "font_size_icon": "56px",
    "font_size_icon_compact": "36px",
    "font_weight_light": "300",
    "font_weight_normal": "400",
    "font_weight_medium": "500",
    "font_weight_semibold": "600",
}

COLOR_ACCENTS = {
    "blue": "#3B82F6",
    "red": "#DC2626",
    "green": "#22C55E",
    "purple": "#8B5CF6",
    "gray": "#8E8E93",
}

COLORS = {
    "background": "#0B0B12",
    "surface": "#1A1A24",
    "surface_hover": "#262634",
    "text_primary": "#FFFFFF",
    "text_secondary": "#A1A1AA",
    "border": "#2E2E3A",
}

# Tile sizes (px) for the large and compact grids
TILE_SIZE = {"large": 260, "compact": 180}


class Theme:
    """QSS stylesheet for the launcher window and its helper windows."""

    def __init__(self) -> None:
        self.colors = COLORS

    def get_stylesheet(self) -> str:
        colors = self.colors
        font_family = TYPOGRAPHY["font_family"]
        accent = COLOR_ACCENTS["purple"]

        return f"""
        QMainWindow, QDialog {{
            background-color: {colors["background"]};
            color: {colors["text_primary"]};
        }}

        QLabel#TitleLabel {{
            font-family: {font_family};
            font-size: {TYPOGRAPHY["font_size_2xl"]};
            font-weight: {TYPOGRAPHY["font_weight_semibold"]};
            color: {colors["text_primary"]};
        }}

        QLabel#ClockLabel {{
            font-family: {font_family};
            font-size: {TYPOGRAPHY["font_size_lg"]};
            font-weight: {TYPOGRAPHY["font_weight_light"]};
            color: {colors["text_primary"]};
        }}

        QLabel#HintLabel {{
            font-family: {font_family};
            font-size: {TYPOGRAPHY["font_size_sm"]};
            color: {colors["text_secondary"]};
        }}

        /* Service tiles */
        QPushButton#TileButton {{
            background-color: {colors["surface"]};
            color: {colors["text_primary"]};
            border: 1px solid {colors["border"]};
            border-radius: 24px;
            font-family: {font_family};
            font-size: {TYPOGRAPHY["font_size_lg"]};
            font-weight: {TYPOGRAPHY["font_weight_medium"]};
            padding: {SPACING["lg"]};
        }}

        QPushButton#TileButton:hover, QPushButton#TileButton:focus {{
            background-color: {colors["surface_hover"]};
            border-color: {accent};
        }}

        QPushButton#TileButton:pressed {{
            background-color: {self._adjust_brightness(colors["surface_hover"], -20)};
        }}

        QPushButton#TileButton[loading="true"] {{
            border: 2px solid {accent};
            background-color: {self._rgba(accent, 0.2)};
        }}

        QPushButton#ToolbarButton {{
            background-color: {colors["surface"]};
            color: {colors["text_primary"]};
            border: 1px solid {colors["border"]};
            border-radius: 20px;
            padding: {SPACING["sm"]} {SPACING["xl"]};
            font-family: {font_family};
            font-size: {TYPOGRAPHY["font_size_base"]};
            min-height: 36px;
        }}

        QPushButton#ToolbarButton:hover {{
            background-color: {colors["surface_hover"]};
        }}

        /* Toast notifications */
        QLabel#ToastInfo, QLabel#ToastError {{
            color: #FFFFFF;
            border-radius: 12px;
            padding: {SPACING["lg"]} {SPACING["xl"]};
            font-family: {font_family};
            font-size: {TYPOGRAPHY["font_size_base"]};
            font-weight: {TYPOGRAPHY["font_weight_medium"]};
        }}

        QLabel#ToastInfo {{
            background-color: {self._rgba(COLOR_ACCENTS["green"], 0.9)};
        }}

        QLabel#ToastError {{
            background-color: {self._rgba(COLOR_ACCENTS["red"], 0.9)};
        }}

        /* Corner "back to launcher" button */
        QPushButton#CornerButton {{
            background-color: {self._rgba(accent, 0.85)};
            color: #FFFFFF;
            border: none;
            border-radius: 28px;
            font-size: {TYPOGRAPHY["font_size_xl"]};
            min-width: 56px;
            min-height: 56px;
        }}

        QCheckBox {{
            font-family: {font_family};
            font-size: {TYPOGRAPHY["font_size_base"]};
            color: {colors["text_primary"]};
            spacing: {SPACING["sm"]};
        }}

        QCheckBox::indicator {{
            width: 20px;
            height: 20px;
            border-radius: 6px;
            border: 2px solid {colors["border"]};
            background-color: {colors["surface"]};
        }}

        QCheckBox::indicator:checked {{
            background-color: {accent};
            border-color: {accent};
        }}
        """

    def tile_icon_size(self, large: bool) -> str:
        return TYPOGRAPHY["font_size_icon"] if large else TYPOGRAPHY["font_size_icon_compact"]

    def _adjust_brightness(self, hex_color: str, percent: int) -> str:
        """Adjust color brightness (simple approximation)."""
        hex_color = hex_color.lstrip("#")
        r, g, b = int(hex_color[0:2], 16), int(hex_color[2:4], 16), int(hex_color[4:6], 16)

        factor = 1 + (percent / 100)
        r = max(0, min(255, int(r * factor)))
        g = max(0, min(255, int(g * factor)))
        b = max(0, min(255, int(b * factor)))

        return f"#{r:02x}{g:02x}{b:02x}"

    def _rgba(self, hex_color: str, alpha: float) -> str:
        """Convert hex color to rgba string."""
        hex_color = hex_color.lstrip("#")
        r, g, b = int(hex_color[0:2], 16), int(hex_color[2:4], 16), int(hex_color[4:6], 16)
        return f"rgba({r}, {g}, {b}, {alpha})"
