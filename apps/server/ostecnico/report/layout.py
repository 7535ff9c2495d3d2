"""Page geometry and cursor bookkeeping for the service-order PDF.

All values are millimetres on an A4 page with the origin at the top-left
corner.  ``pdf_builder`` converts to ReportLab points (origin bottom-left)
only at draw time, so the pagination rules below stay in page units.
"""

from __future__ import annotations

from dataclasses import dataclass

PAGE_W_MM = 210.0
PAGE_H_MM = 297.0
MARGIN_X_MM = 15.0
TOP_MM = 20.0
CONTENT_W_MM = PAGE_W_MM - 2 * MARGIN_X_MM

LINE_H_MM = 5.0
BLOCK_GAP_MM = 10.0
HEADING_GAP_MM = 5.0

# Fixed page-break thresholds (distance from the top, not content-aware).
TEXT_BLOCK_BREAK_Y_MM = 250.0
CHECKLIST_BREAK_Y_MM = 240.0

TABLE_BOTTOM_MARGIN_MM = 20.0
FOOTER_Y_FROM_BOTTOM_MM = 10.0

LOGO_X_MM = 15.0
LOGO_Y_MM = 10.0
LOGO_W_MM = 50.0
LOGO_H_MM = 20.0
HEADER_TITLE_Y_MM = 20.0
HEADER_SUBTITLE_Y_MM = 28.0
HEADER_META_Y_MM = 40.0

PHOTO_W_MM = 80.0
PHOTO_H_MM = 60.0
PHOTO_GAP_MM = 10.0
PHOTO_HEADING_GAP_MM = 15.0
PHOTO_BOTTOM_MARGIN_MM = 20.0


@dataclass(slots=True)
class LayoutCursor:
    """Mutable layout state; lives for the duration of one composition."""

    y: float = TOP_MM
    x: float = MARGIN_X_MM
    page: int = 1

    def new_page(self) -> None:
        self.page += 1
        self.y = TOP_MM
        self.x = MARGIN_X_MM

    def advance(self, dy: float) -> None:
        self.y += dy

    def needs_break(self, threshold_mm: float) -> bool:
        return self.y > threshold_mm

    def remaining_mm(self, bottom_margin_mm: float = TABLE_BOTTOM_MARGIN_MM) -> float:
        return PAGE_H_MM - bottom_margin_mm - self.y


def fit_image_in_box(
    src_w: float,
    src_h: float,
    box_w: float = PHOTO_W_MM,
    box_h: float = PHOTO_H_MM,
) -> tuple[float, float, float, float]:
    """Return (x_offset, y_offset, w, h) fitting src inside the box, centred."""
    if src_w <= 0 or src_h <= 0:
        return 0.0, 0.0, box_w, box_h
    ratio = src_w / src_h
    w, h = box_w, box_h
    if ratio > box_w / box_h:
        h = box_w / ratio
    else:
        w = box_h * ratio
    return (box_w - w) / 2, (box_h - h) / 2, w, h


def place_photo_cell(cursor: LayoutCursor) -> bool:
    """Move *cursor* to where the next photo cell goes.

    Wraps to a new row when the cell would cross the right margin and asks
    for a new page (returns True) when the row would cross the bottom
    margin.  The caller must start the page and then call again.
    """
    if cursor.x + PHOTO_W_MM > PAGE_W_MM - MARGIN_X_MM:
        cursor.x = MARGIN_X_MM
        cursor.y += PHOTO_H_MM + PHOTO_GAP_MM
    return cursor.y + PHOTO_H_MM > PAGE_H_MM - PHOTO_BOTTOM_MARGIN_MM


def advance_photo_cell(cursor: LayoutCursor) -> None:
    cursor.x += PHOTO_W_MM + PHOTO_GAP_MM
