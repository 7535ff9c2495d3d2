"""Service-order PDF composer – Canvas-based single-flow layout.

Sections are emitted top-down: header, summary table, problem description,
accessories, the three checklists, technician observation and a photo grid
that always starts on its own page.  Page breaks use fixed thresholds from
:mod:`.layout`; the "Página i de N" footer is stamped on every page once the
total is known.

Per-element failures never abort the document: a missing logo is skipped and
an unreachable photo becomes a bordered placeholder cell.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from io import BytesIO
from pathlib import Path
from typing import Any

from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.pdfgen.canvas import Canvas
from reportlab.platypus import Table

from ..config import ReportConfig, default_config
from ..domain_models import (
    ServiceOrderReport,
    accessories_line,
    checklist_status_token,
    report_filename,
    status_label,
)
from ..errors import OstecnicoError, ReportSaveError
from ..report_i18n import format_date
from ..report_i18n import tr as _tr
from ..report_theme import REPORT_COLORS
from .images import ImageLoader, LoadedImage, load_image
from .layout import (
    BLOCK_GAP_MM,
    CHECKLIST_BREAK_Y_MM,
    CONTENT_W_MM,
    FOOTER_Y_FROM_BOTTOM_MM,
    HEADER_META_Y_MM,
    HEADER_SUBTITLE_Y_MM,
    HEADER_TITLE_Y_MM,
    HEADING_GAP_MM,
    LINE_H_MM,
    LOGO_H_MM,
    LOGO_W_MM,
    LOGO_X_MM,
    LOGO_Y_MM,
    MARGIN_X_MM,
    PAGE_H_MM,
    PAGE_W_MM,
    PHOTO_H_MM,
    PHOTO_HEADING_GAP_MM,
    PHOTO_W_MM,
    TEXT_BLOCK_BREAK_Y_MM,
    TOP_MM,
    LayoutCursor,
    advance_photo_cell,
    fit_image_in_box,
    place_photo_cell,
)
from .pdf_helpers import (
    FONT,
    FONT_B,
    FS_BODY,
    FS_CHECKLIST,
    FS_FOOTER,
    FS_SUBTITLE,
    FS_TITLE,
    checklist_table,
    hex_color,
    summary_table,
    wrap_lines,
)

LOGGER = logging.getLogger(__name__)

PAGE_SIZE = A4
PAGE_W, PAGE_H = PAGE_SIZE


@dataclass(frozen=True, slots=True)
class PhotoCell:
    """One photo grid cell as placed on the page (millimetres, top-left origin)."""

    page: int
    x: float
    y: float
    source: str
    placeholder: bool


@dataclass(slots=True)
class ComposedReport:
    pdf: bytes
    filename: str
    page_count: int
    photo_cells: list[PhotoCell] = field(default_factory=list)
    logo_drawn: bool = False


class ServiceOrderCanvas(Canvas):
    """Canvas that buffers pages so the footer can show the final page count."""

    def __init__(self, *args: Any, footer_label: Callable[[int, int], str], **kwargs: Any):
        super().__init__(*args, **kwargs)
        self._footer_label = footer_label
        self._saved_page_states: list[dict[str, Any]] = []

    def showPage(self) -> None:  # noqa: N802 - ReportLab API name
        self._saved_page_states.append(dict(self.__dict__))
        self._startPage()

    @property
    def page_count(self) -> int:
        return len(self._saved_page_states)

    def save(self) -> None:
        total = len(self._saved_page_states)
        for state in self._saved_page_states:
            self.__dict__.update(state)
            self._draw_footer(total)
            super().showPage()
        super().save()

    def _draw_footer(self, total: int) -> None:
        self.saveState()
        self.setFont(FONT, FS_FOOTER)
        self.setFillColor(hex_color(REPORT_COLORS["text_faint"]))
        self.drawCentredString(
            PAGE_W / 2.0,
            FOOTER_Y_FROM_BOTTOM_MM * mm,
            self._footer_label(self._pageNumber, total),
        )
        self.restoreState()


class _Composer:
    def __init__(
        self,
        c: ServiceOrderCanvas,
        order: ServiceOrderReport,
        config: ReportConfig,
        image_loader: ImageLoader,
    ) -> None:
        self.c = c
        self.order = order
        self.config = config
        self.image_loader = image_loader
        self.lang = config.language
        self.cursor = LayoutCursor(y=TOP_MM)
        self.photo_cells: list[PhotoCell] = []
        self.logo_drawn = False

    def tr(self, key: str, **kw: object) -> str:
        return _tr(self.lang, key, **kw)

    # -- coordinate helpers ----------------------------------------------------

    @staticmethod
    def _pt_y(y_mm: float) -> float:
        return (PAGE_H_MM - y_mm) * mm

    def _new_page(self) -> None:
        self.c.showPage()
        self.cursor.new_page()

    def _break_if_below(self, threshold_mm: float) -> None:
        if self.cursor.needs_break(threshold_mm):
            self._new_page()

    def _text(
        self,
        x_mm: float,
        y_mm: float,
        text: str,
        *,
        font: str = FONT,
        size: float = FS_BODY,
        color: str = REPORT_COLORS["ink"],
        align: str = "left",
    ) -> None:
        self.c.setFont(font, size)
        self.c.setFillColor(hex_color(color))
        if align == "right":
            self.c.drawRightString(x_mm * mm, self._pt_y(y_mm), text)
        elif align == "center":
            self.c.drawCentredString(x_mm * mm, self._pt_y(y_mm), text)
        else:
            self.c.drawString(x_mm * mm, self._pt_y(y_mm), text)

    # -- sections --------------------------------------------------------------

    def header(self) -> None:
        if self.config.logo_path is not None:
            try:
                logo = self.image_loader(str(self.config.logo_path), self.config.photo_timeout_s)
                dx, dy, w, h = fit_image_in_box(logo.width, logo.height, LOGO_W_MM, LOGO_H_MM)
                self.c.drawImage(
                    logo.reader,
                    (LOGO_X_MM + dx) * mm,
                    self._pt_y(LOGO_Y_MM + dy + h),
                    width=w * mm,
                    height=h * mm,
                )
                self.logo_drawn = True
            except Exception:
                LOGGER.debug("Logo not available, skipping", exc_info=True)

        right = PAGE_W_MM - MARGIN_X_MM
        self._text(
            right,
            HEADER_TITLE_Y_MM,
            self.config.company_name,
            font=FONT_B,
            size=FS_TITLE,
            color=REPORT_COLORS["brand"],
            align="right",
        )
        self._text(
            right,
            HEADER_SUBTITLE_Y_MM,
            self.config.subtitle,
            size=FS_SUBTITLE,
            color=REPORT_COLORS["text_muted"],
            align="right",
        )

        self.cursor.y = HEADER_META_Y_MM
        na = self.tr("NOT_AVAILABLE")
        number = str(self.order.order_number) if self.order.order_number else na
        self._text(MARGIN_X_MM, self.cursor.y, self.tr("ORDER_NUMBER", number=number), font=FONT_B)
        self._text(
            right,
            self.cursor.y,
            self.tr("ORDER_DATE", date=format_date(self.lang, self.order.created_at, na)),
            font=FONT_B,
            align="right",
        )
        self.cursor.advance(BLOCK_GAP_MM)

    def summary(self) -> None:
        order = self.order
        na = self.tr("NOT_AVAILABLE")
        rows = [
            (self.tr("CUSTOMER"), order.customer.name or na),
            (self.tr("TAX_ID"), order.customer.tax_id or na),
            (self.tr("PHONE"), order.customer.phone or na),
            (self.tr("TECHNICIAN"), order.technician.name or na),
            (self.tr("EQUIPMENT"), order.equipment or na),
            (self.tr("SERIAL_NUMBER"), order.serial_number or na),
            (self.tr("STATUS"), status_label(order.status) or na),
        ]
        self._draw_table(summary_table(self.tr("MAIN_INFO"), rows))
        self.cursor.advance(BLOCK_GAP_MM)

    def text_block(self, heading_key: str, text: str) -> None:
        self._text(MARGIN_X_MM, self.cursor.y, self.tr(heading_key), font=FONT_B)
        self.cursor.advance(HEADING_GAP_MM)
        for line in wrap_lines(text, CONTENT_W_MM, FS_BODY):
            if self.cursor.remaining_mm() < 0:
                self._new_page()
            self._text(MARGIN_X_MM, self.cursor.y, line)
            self.cursor.advance(LINE_H_MM)
        self.cursor.advance(BLOCK_GAP_MM)

    def accessories(self) -> None:
        self._break_if_below(TEXT_BLOCK_BREAK_Y_MM)
        self._text(MARGIN_X_MM, self.cursor.y, self.tr("ACCESSORIES_HEADING"), font=FONT_B)
        self.cursor.advance(HEADING_GAP_MM)
        self._text(MARGIN_X_MM, self.cursor.y, accessories_line(self.order.accessories, self.lang))
        self.cursor.advance(BLOCK_GAP_MM)

    def checklists(self) -> None:
        headers_tail = (self.tr("CHECKLIST_STATUS"), self.tr("CHECKLIST_OBSERVATION"))
        for title_key, items in self.order.checklists:
            self._break_if_below(CHECKLIST_BREAK_Y_MM)
            if not items:
                continue
            rows = [
                (item.label, checklist_status_token(item.status), item.observation or "-")
                for item in items
            ]
            self._draw_table(checklist_table((self.tr(title_key), *headers_tail), rows))
            self.cursor.advance(BLOCK_GAP_MM)

    def observation(self) -> None:
        text = self.order.technician_observation
        if not text:
            return
        self._break_if_below(TEXT_BLOCK_BREAK_Y_MM)
        self.text_block("OBSERVATION_HEADING", text)

    def photos(self) -> None:
        if not self.order.photos:
            return
        self._new_page()
        self._text(
            MARGIN_X_MM,
            self.cursor.y,
            self.tr("PHOTOS_HEADING"),
            font=FONT_B,
            color=REPORT_COLORS["brand"],
        )
        self.cursor.advance(PHOTO_HEADING_GAP_MM)
        self.cursor.x = MARGIN_X_MM

        # Loaded one at a time, in input order, so placement is deterministic.
        for ref in self.order.photos:
            image = None
            try:
                image = self.image_loader(ref, self.config.photo_timeout_s)
            except Exception:
                LOGGER.warning("Error loading photo for PDF: %s", ref, exc_info=True)

            while place_photo_cell(self.cursor):
                self._new_page()

            placed = False
            if image is not None:
                placed = self._draw_photo(image)
            if not placed:
                self._draw_placeholder()
            self.photo_cells.append(
                PhotoCell(
                    page=self.cursor.page,
                    x=self.cursor.x,
                    y=self.cursor.y,
                    source=ref,
                    placeholder=not placed,
                )
            )
            advance_photo_cell(self.cursor)

    # -- drawing primitives ----------------------------------------------------

    def _draw_photo(self, image: LoadedImage) -> bool:
        x, y = self.cursor.x, self.cursor.y
        dx, dy, w, h = fit_image_in_box(image.width, image.height)
        try:
            self.c.drawImage(
                image.reader,
                (x + dx) * mm,
                self._pt_y(y + dy + h),
                width=w * mm,
                height=h * mm,
            )
        except Exception:
            LOGGER.warning("Error drawing photo into PDF", exc_info=True)
            return False
        return True

    def _draw_placeholder(self) -> None:
        x, y = self.cursor.x, self.cursor.y
        self.c.saveState()
        self.c.setStrokeColor(hex_color(REPORT_COLORS["placeholder_border"]))
        self.c.rect(x * mm, self._pt_y(y + PHOTO_H_MM), PHOTO_W_MM * mm, PHOTO_H_MM * mm, stroke=1, fill=0)
        self.c.restoreState()
        self._text(
            x + 5,
            y + PHOTO_H_MM / 2,
            self.tr("PHOTO_LOAD_ERROR"),
            size=FS_CHECKLIST,
            color=REPORT_COLORS["text_faint"],
        )

    def _draw_table(self, table: Table) -> None:
        """Draw *table* at the cursor, splitting across pages when it overflows."""
        width = CONTENT_W_MM * mm
        pending: list[Table] = [table]
        while pending:
            part = pending.pop(0)
            avail = self.cursor.remaining_mm() * mm
            _, height = part.wrapOn(self.c, width, avail)
            if height <= avail:
                part.drawOn(self.c, MARGIN_X_MM * mm, self._pt_y(self.cursor.y) - height)
                self.cursor.advance(height / mm)
                continue
            pieces = part.split(width, avail) if avail > 0 else []
            if len(pieces) >= 2:
                pending[0:0] = pieces
                continue
            if self.cursor.y <= TOP_MM:
                # A single row taller than a page; draw it and let it overflow.
                part.drawOn(self.c, MARGIN_X_MM * mm, self._pt_y(self.cursor.y) - height)
                self.cursor.advance(height / mm)
                continue
            self._new_page()
            pending.insert(0, part)


# ---------------------------------------------------------------------------
# Public entry points
# ---------------------------------------------------------------------------


def compose_report(
    order: ServiceOrderReport,
    *,
    config: ReportConfig | None = None,
    image_loader: ImageLoader = load_image,
) -> ComposedReport:
    """Lay out *order* and return the PDF together with its layout trace."""
    cfg = config or default_config().report
    try:
        return _compose(order, cfg, image_loader)
    except Exception as exc:
        LOGGER.error("PDF generation failed.", exc_info=True)
        raise OstecnicoError("PDF generation failed", "REPORT_BUILD_FAILED") from exc


def _compose(
    order: ServiceOrderReport,
    cfg: ReportConfig,
    image_loader: ImageLoader,
) -> ComposedReport:
    lang = cfg.language
    buf = BytesIO()
    c = ServiceOrderCanvas(
        buf,
        pagesize=PAGE_SIZE,
        pageCompression=0,
        footer_label=lambda page, total: _tr(lang, "PAGE_LABEL", page=page, total=total),
    )
    c.setTitle(f"{cfg.subtitle} {order.order_number or ''}".strip())
    c.setAuthor(cfg.company_name)

    composer = _Composer(c, order, cfg, image_loader)
    composer.header()
    composer.summary()
    composer.text_block(
        "PROBLEM_HEADING",
        order.problem_description or composer.tr("PROBLEM_MISSING"),
    )
    composer.accessories()
    composer.checklists()
    composer.observation()
    composer.photos()

    c.showPage()
    page_count = c.page_count
    c.save()
    LOGGER.info(
        "Composed service order %s: %d page(s), %d photo cell(s)",
        order.order_number,
        page_count,
        len(composer.photo_cells),
    )
    return ComposedReport(
        pdf=buf.getvalue(),
        filename=report_filename(order),
        page_count=page_count,
        photo_cells=composer.photo_cells,
        logo_drawn=composer.logo_drawn,
    )


def build_service_order_pdf(
    order: ServiceOrderReport,
    *,
    config: ReportConfig | None = None,
    image_loader: ImageLoader = load_image,
) -> bytes:
    return compose_report(order, config=config, image_loader=image_loader).pdf


def generate_report(
    order: ServiceOrderReport,
    *,
    output_dir: Path | None = None,
    config: ReportConfig | None = None,
    image_loader: ImageLoader = load_image,
) -> Path:
    """Compose *order* and save it as ``OS_<n>_<customer>.pdf`` in *output_dir*."""
    cfg = config or default_config().report
    composed = compose_report(order, config=cfg, image_loader=image_loader)
    target_dir = output_dir or cfg.output_dir
    out_path = target_dir / composed.filename
    try:
        target_dir.mkdir(parents=True, exist_ok=True)
        out_path.write_bytes(composed.pdf)
    except OSError as exc:
        raise ReportSaveError(f"Could not save report to {out_path}: {exc}") from exc
    LOGGER.info("Saved report %s", out_path)
    return out_path
