from __future__ import annotations

# Print-friendly palette; brand blue matches the shop's web UI accent.
REPORT_COLORS = {
    "brand": "#0099ff",
    "brand_text": "#ffffff",
    "ink": "#000000",
    "text_muted": "#646464",
    "text_faint": "#969696",
    "placeholder_border": "#c8c8c8",
    "table_grid": "#c8c8c8",
    "table_zebra_bg": "#f5f5f5",
    "table_row_bg": "#ffffff",
}
