from __future__ import annotations

# Print-friendly light palette.
REPORT_COLORS = {
    "ink": "#1a1c24",
    "border": "#c4c7d0",
    "surface": "#f8f9fb",
    "axis": "#7b8da0",
    "table_row_border": "#dcdfe6",
    "text_primary": "#1a1c24",
    "text_secondary": "#52555e",
    "text_muted": "#6b6e78",
    "brand": "#1e3a8a",
    "card_success_bg": "#e7f5ee",
    "card_warn_bg": "#fef3e0",
    "card_error_bg": "#fce8e6",
}

SERIES_COLORS = {
    "lateral": "#3b82f6",
    "vertical": "#f43f5e",
}

# Threshold reference lines, least severe first.
BAND_COLORS = {
    "alert": "#eab308",
    "intervention": "#f97316",
    "immediate": "#dc2626",
}

COMPLIANCE_BG = {
    "Compliant": REPORT_COLORS["card_success_bg"],
    "Monitor": REPORT_COLORS["card_warn_bg"],
    "Critical": REPORT_COLORS["card_error_bg"],
}
