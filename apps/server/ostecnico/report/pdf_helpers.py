"""Table and text helpers for the service-order PDF."""

from __future__ import annotations

from html import escape
from typing import Any

from reportlab.lib import colors
from reportlab.lib.styles import ParagraphStyle
from reportlab.lib.units import mm
from reportlab.lib.utils import simpleSplit
from reportlab.platypus import Paragraph, Table, TableStyle

from ..report_theme import REPORT_COLORS

FONT = "Helvetica"
FONT_B = "Helvetica-Bold"
FS_TITLE = 20
FS_SUBTITLE = 12
FS_BODY = 10
FS_SUMMARY = 9
FS_CHECKLIST = 8
FS_FOOTER = 8

SUMMARY_COL_WIDTHS_MM = (60.0, 120.0)
CHECKLIST_COL_WIDTHS_MM = (70.0, 25.0, 85.0)


def hex_color(value: str) -> colors.Color:
    return colors.HexColor(value)


def wrap_lines(text: str, width_mm: float, font_size: float = FS_BODY) -> list[str]:
    """Split *text* into lines no wider than *width_mm* using font metrics."""
    lines: list[str] = []
    for paragraph in text.split("\n"):
        lines.extend(simpleSplit(paragraph, FONT, font_size, width_mm * mm) or [""])
    return lines


def _cell_style(font_size: float, *, bold: bool = False, color: str | None = None) -> ParagraphStyle:
    return ParagraphStyle(
        name=f"cell-{font_size}-{'b' if bold else 'r'}",
        fontName=FONT_B if bold else FONT,
        fontSize=font_size,
        leading=font_size + 2,
        textColor=hex_color(color or REPORT_COLORS["ink"]),
    )


def _cell(text: str, style: ParagraphStyle) -> Paragraph:
    return Paragraph(escape(text).replace("\n", "<br/>"), style)


def summary_table(title: str, rows: list[tuple[str, str]]) -> Table:
    """Two-column grid table with a brand-coloured header row."""
    head = _cell_style(FS_SUMMARY, bold=True, color=REPORT_COLORS["brand_text"])
    body = _cell_style(FS_SUMMARY)
    data: list[list[Any]] = [[_cell(title, head), ""]]
    data.extend([_cell(label, body), _cell(value, body)] for label, value in rows)
    table = Table(
        data,
        colWidths=[w * mm for w in SUMMARY_COL_WIDTHS_MM],
        repeatRows=1,
    )
    grid = hex_color(REPORT_COLORS["table_grid"])
    table.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, 0), hex_color(REPORT_COLORS["brand"])),
                ("SPAN", (0, 0), (-1, 0)),
                ("GRID", (0, 0), (-1, -1), 0.3, grid),
                ("VALIGN", (0, 0), (-1, -1), "TOP"),
                ("LEFTPADDING", (0, 0), (-1, -1), 4),
                ("RIGHTPADDING", (0, 0), (-1, -1), 4),
                ("TOPPADDING", (0, 0), (-1, -1), 3),
                ("BOTTOMPADDING", (0, 0), (-1, -1), 3),
            ]
        )
    )
    return table


def checklist_table(headers: tuple[str, str, str], rows: list[tuple[str, str, str]]) -> Table:
    """Striped three-column checklist table; the header repeats on split."""
    head = _cell_style(FS_CHECKLIST, bold=True, color=REPORT_COLORS["brand_text"])
    body = _cell_style(FS_CHECKLIST)
    data: list[list[Any]] = [[_cell(h, head) for h in headers]]
    data.extend([_cell(label, body), _cell(token, body), _cell(obs, body)] for label, token, obs in rows)
    table = Table(
        data,
        colWidths=[w * mm for w in CHECKLIST_COL_WIDTHS_MM],
        repeatRows=1,
    )
    cmds: list[tuple[object, ...]] = [
        ("BACKGROUND", (0, 0), (-1, 0), hex_color(REPORT_COLORS["brand"])),
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
        ("LEFTPADDING", (0, 0), (-1, -1), 4),
        ("RIGHTPADDING", (0, 0), (-1, -1), 4),
        ("TOPPADDING", (0, 0), (-1, -1), 3),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 3),
        (
            "ROWBACKGROUNDS",
            (0, 1),
            (-1, -1),
            [hex_color(REPORT_COLORS["table_zebra_bg"]), hex_color(REPORT_COLORS["table_row_bg"])],
        ),
    ]
    table.setStyle(TableStyle(cmds))
    return table
