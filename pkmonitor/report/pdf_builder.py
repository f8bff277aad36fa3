"""PDF report builder: Canvas-based inspection report.

Page 1: header with session metadata, lateral chart with the three
threshold lines, vertical chart, axis summary and exceedance counts.
Page 2 (only when the session carries an analysis): analysis result.
"""

from __future__ import annotations

import logging
import textwrap
from io import BytesIO

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.pdfgen.canvas import Canvas

from ..domain_models import AnalysisResult, Direction
from ..thresholds import Band
from .i18n import tr as _tr
from .pdf_charts import line_plot
from .report_data import ReportData
from .theme import BAND_COLORS, COMPLIANCE_BG, REPORT_COLORS, SERIES_COLORS

LOGGER = logging.getLogger(__name__)

PAGE_SIZE = A4
PAGE_W, PAGE_H = PAGE_SIZE
MARGIN = 11 * mm

TEXT_CLR = REPORT_COLORS["text_primary"]
SUB_CLR = REPORT_COLORS["text_secondary"]
MUTED_CLR = REPORT_COLORS["text_muted"]
LINE_CLR = REPORT_COLORS["border"]
BRAND_CLR = REPORT_COLORS["brand"]
PANEL_BG = "#ffffff"
SOFT_BG = REPORT_COLORS["surface"]

FONT = "Helvetica"
FONT_B = "Helvetica-Bold"
FS_TITLE = 13
FS_H2 = 9
FS_BODY = 8

R_CARD = 5
GAP = 4 * mm
CHART_H = 62 * mm
ROW_H = 6 * mm

_BANDS: tuple[tuple[Band, str], ...] = (
    (Band.ALERT, "BAND_ALERT"),
    (Band.INTERVENTION, "BAND_INTERVENTION"),
    (Band.IMMEDIATE, "BAND_IMMEDIATE"),
)


def _hex(c: str) -> colors.Color:
    return colors.HexColor(c)


def _safe(v: str | None, fallback: str = "—") -> str:
    return str(v).strip() if v and str(v).strip() else fallback


def _draw_panel(
    c: Canvas,
    x: float,
    y: float,
    w: float,
    h: float,
    title: str | None = None,
    fill: str = PANEL_BG,
    border: str = LINE_CLR,
) -> None:
    c.setFillColor(_hex(fill))
    c.setStrokeColor(_hex(border))
    c.roundRect(x, y, w, h, R_CARD, stroke=1, fill=1)
    if title:
        c.setFillColor(_hex(TEXT_CLR))
        c.setFont(FONT_B, FS_H2)
        c.drawString(x + 4 * mm, y + h - 5.5 * mm, title)


def _wrap_lines(text: str, width_pt: float, font_size: int) -> list[str]:
    avg_char_w = font_size * 0.48
    max_chars = max(10, int(width_pt / avg_char_w))
    lines: list[str] = []
    for paragraph in text.split("\n"):
        lines.extend(textwrap.wrap(paragraph, width=max_chars) or [""])
    return lines


def _draw_text(
    c: Canvas,
    x: float,
    y_top: float,
    w: float,
    text: str,
    *,
    font: str = FONT,
    size: int = FS_BODY,
    color: str = TEXT_CLR,
    y_bottom: float = MARGIN,
) -> float:
    """Draw wrapped text top-down, stopping at *y_bottom*.  Returns the next y."""
    leading = size + 2
    c.setFillColor(_hex(color))
    c.setFont(font, size)
    y = y_top
    for line in _wrap_lines(text, w, size):
        if y < y_bottom:
            break
        c.drawString(x, y, line)
        y -= leading
    return y


def _draw_kv(
    c: Canvas,
    x: float,
    y: float,
    label: str,
    value: str,
    *,
    label_w: float = 34 * mm,
    fs: int = FS_BODY,
) -> float:
    c.setFillColor(_hex(SUB_CLR))
    c.setFont(FONT, fs)
    c.drawString(x, y, f"{label}:")
    c.setFillColor(_hex(TEXT_CLR))
    c.setFont(FONT_B, fs)
    c.drawString(x + label_w, y, value)
    return y - (fs + 3)


def _draw_footer(c: Canvas, page_num: int, total: int, data: ReportData) -> None:
    y = MARGIN - 4 * mm
    c.setFont(FONT, 6)
    c.setFillColor(_hex(MUTED_CLR))
    c.drawString(MARGIN, y, f"{_tr(data.lang, 'REPORT_FOOTER_TITLE')} · {data.version_marker}")
    c.drawRightString(
        PAGE_W - MARGIN, y, _tr(data.lang, "PAGE_LABEL", page=page_num, total=total)
    )


def _fmt_threshold(value: float) -> str:
    return f"{value:.1f}"


# ---------------------------------------------------------------------------
# Page 1
# ---------------------------------------------------------------------------


def _draw_header(c: Canvas, data: ReportData, y_top: float) -> float:
    m = MARGIN
    W = PAGE_W - 2 * m

    def tr(key: str, **kw: object) -> str:
        return _tr(data.lang, key, **kw)

    cfg = data.config
    na = tr("NOTE_EMPTY")
    direction_key = (
        "DIRECTION_DECREASING" if cfg.direction is Direction.DECREASING else "DIRECTION_INCREASING"
    )
    left = [
        (tr("DATE"), data.date_text),
        (tr("TIME"), data.time_text),
        (tr("OPERATOR"), _safe(cfg.operator)),
        (tr("LINE"), _safe(cfg.line)),
        (tr("TRACK"), _safe(cfg.track)),
        (tr("DIRECTION"), tr(direction_key)),
    ]
    right = [
        (
            tr("PK_RANGE"),
            tr("PK_RANGE_VALUE", low=f"{data.low:.5f}", high=f"{data.high:.5f}"),
        ),
        (tr("TRAIN"), _safe(cfg.train)),
        (tr("ENGINE_NUMBER"), _safe(cfg.engine_number)),
        (tr("TRAIN_POSITION"), _safe(cfg.train_position)),
        (tr("NOTE"), _safe(cfg.note, na)),
        (
            tr("SAMPLES_IN_RANGE"),
            tr("SAMPLES_IN_RANGE_VALUE", selected=data.sample_count, total=data.total_samples),
        ),
    ]
    rows = max(len(left), len(right))
    hdr_h = 20 * mm + rows * (FS_BODY + 3)
    hdr_y = y_top - hdr_h
    _draw_panel(c, m, hdr_y, W, hdr_h, fill=SOFT_BG)

    c.setFillColor(_hex(BRAND_CLR))
    c.setFont(FONT_B, FS_TITLE)
    c.drawString(m + 4 * mm, hdr_y + hdr_h - 7 * mm, tr("REPORT_TITLE", report_id=data.report_id))
    c.setFillColor(_hex(SUB_CLR))
    c.setFont(FONT, FS_BODY)
    c.drawString(m + 4 * mm, hdr_y + hdr_h - 11.5 * mm, tr("REPORT_SUBTITLE"))

    y_left = y_right = hdr_y + hdr_h - 17 * mm
    for label, value in left:
        y_left = _draw_kv(c, m + 4 * mm, y_left, label, value, label_w=24 * mm)
    for label, value in right:
        y_right = _draw_kv(c, m + W / 2, y_right, label, value, label_w=26 * mm)

    th = cfg.thresholds
    thresholds_text = tr(
        "THRESHOLDS_VALUE",
        alert=_fmt_threshold(th.alert),
        intervention=_fmt_threshold(th.intervention),
        immediate=_fmt_threshold(th.immediate),
    )
    _draw_kv(
        c,
        m + 4 * mm,
        min(y_left, y_right) - 1,
        tr("LATERAL_THRESHOLDS"),
        thresholds_text,
        label_w=50 * mm,
    )
    return hdr_y


def _draw_chart(c: Canvas, data: ReportData, y_top: float, *, lateral: bool) -> float:
    m = MARGIN
    W = PAGE_W - 2 * m

    def tr(key: str, **kw: object) -> str:
        return _tr(data.lang, key, **kw)

    th = data.config.thresholds
    if lateral:
        series = [(tr("SERIES_LATERAL"), SERIES_COLORS["lateral"], data.lateral_points)]
        refs = [
            (BAND_COLORS["alert"], th.alert),
            (BAND_COLORS["intervention"], th.intervention),
            (BAND_COLORS["immediate"], th.immediate),
        ]
        title = tr("LATERAL_CHART_TITLE")
    else:
        series = [(tr("SERIES_VERTICAL"), SERIES_COLORS["vertical"], data.vertical_points)]
        refs = []
        title = tr("VERTICAL_CHART_TITLE")
    y = y_top - CHART_H
    _draw_panel(c, m, y, W, CHART_H)
    drawing = line_plot(
        title=title,
        x_label=tr("X_LABEL_PK"),
        y_label=tr("Y_LABEL_ACCEL"),
        series=series,
        width=W - 4 * mm,
        tr=tr,
        reference_lines=refs,
        height=int(CHART_H - 4 * mm),
    )
    drawing.drawOn(c, m + 2 * mm, y + 2 * mm)
    return y


def _draw_summary_table(c: Canvas, data: ReportData, y_top: float) -> float:
    m = MARGIN
    W = PAGE_W - 2 * m

    def tr(key: str) -> str:
        return _tr(data.lang, key)

    col_w = W / 4
    headers = [tr("AXIS"), tr("PEAK"), tr("RMS"), tr("P95")]
    axis_labels = {"lateral": tr("AXIS_LATERAL"), "vertical": tr("AXIS_VERTICAL")}

    c.setFillColor(_hex(TEXT_CLR))
    c.setFont(FONT_B, FS_H2)
    c.drawString(m, y_top - 4 * mm, tr("SUMMARY_TITLE"))
    y = y_top - 6 * mm

    c.setFillColor(_hex(SOFT_BG))
    c.setStrokeColor(_hex(LINE_CLR))
    c.rect(m, y - ROW_H, W, ROW_H, stroke=1, fill=1)
    c.setFillColor(_hex(SUB_CLR))
    c.setFont(FONT_B, FS_BODY - 1)
    for idx, label in enumerate(headers):
        c.drawString(m + idx * col_w + 2 * mm, y - 4.2 * mm, label)
    y -= ROW_H

    c.setFont(FONT, FS_BODY - 1)
    for summary in data.axis_summaries:
        c.setFillColor(_hex(PANEL_BG))
        c.rect(m, y - ROW_H, W, ROW_H, stroke=1, fill=1)
        c.setFillColor(_hex(TEXT_CLR))
        values = [
            axis_labels.get(summary.axis, summary.axis),
            f"{summary.peak:.3f}",
            f"{summary.rms:.3f}",
            f"{summary.p95:.3f}",
        ]
        for idx, value in enumerate(values):
            c.drawString(m + idx * col_w + 2 * mm, y - 4.2 * mm, value)
        y -= ROW_H
    return y


def _draw_counts(c: Canvas, data: ReportData, y_top: float) -> float:
    m = MARGIN
    W = PAGE_W - 2 * m

    def tr(key: str) -> str:
        return _tr(data.lang, key)

    session_counts = {
        Band.ALERT: data.stats.count_alert,
        Band.INTERVENTION: data.stats.count_intervention,
        Band.IMMEDIATE: data.stats.count_immediate,
    }
    h = 22 * mm
    y = y_top - h
    _draw_panel(c, m, y, W, h, tr("EXCEEDANCES_TITLE"))
    col_w = (W - 40 * mm) / len(_BANDS)
    base_x = m + 40 * mm
    c.setFont(FONT_B, FS_BODY - 1)
    for idx, (band, key) in enumerate(_BANDS):
        x = base_x + idx * col_w
        c.setFillColor(_hex(BAND_COLORS[band.value]))
        c.rect(x, y + h - 10.5 * mm, 2.5 * mm, 2.5 * mm, stroke=0, fill=1)
        c.setFillColor(_hex(SUB_CLR))
        c.drawString(x + 4 * mm, y + h - 10 * mm, tr(key))

    rows = (
        (tr("IN_RANGE"), data.range_counts),
        (tr("WHOLE_SESSION"), session_counts),
    )
    row_y = y + h - 15 * mm
    for label, counts in rows:
        c.setFillColor(_hex(SUB_CLR))
        c.setFont(FONT, FS_BODY)
        c.drawString(m + 4 * mm, row_y, label)
        c.setFillColor(_hex(TEXT_CLR))
        c.setFont(FONT_B, FS_BODY)
        for idx, (band, _key) in enumerate(_BANDS):
            c.drawString(base_x + idx * col_w + 4 * mm, row_y, str(counts.get(band, 0)))
        row_y -= FS_BODY + 4
    return y


def _page1(c: Canvas, data: ReportData) -> None:
    y = PAGE_H - MARGIN
    y = _draw_header(c, data, y) - GAP
    y = _draw_chart(c, data, y, lateral=True) - GAP
    y = _draw_chart(c, data, y, lateral=False) - GAP
    y = _draw_summary_table(c, data, y) - GAP
    _draw_counts(c, data, y)


# ---------------------------------------------------------------------------
# Page 2
# ---------------------------------------------------------------------------


def _page2(c: Canvas, data: ReportData, analysis: AnalysisResult) -> None:
    m = MARGIN
    W = PAGE_W - 2 * m

    def tr(key: str) -> str:
        return _tr(data.lang, key)

    y_top = PAGE_H - m
    c.setFillColor(_hex(BRAND_CLR))
    c.setFont(FONT_B, FS_TITLE)
    c.drawString(m, y_top - 6 * mm, tr("ANALYSIS_TITLE"))

    level = analysis.compliance_level
    box_h = 24 * mm
    box_y = y_top - 10 * mm - box_h
    _draw_panel(c, m, box_y, W, box_h, fill=COMPLIANCE_BG.get(level.value, SOFT_BG))
    ky = box_y + box_h - 7 * mm
    ky = _draw_kv(c, m + 4 * mm, ky, tr("COMPLIANCE"), tr(f"COMPLIANCE_{level.name}"))
    ky = _draw_kv(c, m + 4 * mm, ky, tr("ACTIVITY"), _safe(analysis.activity_type))
    _draw_kv(c, m + 4 * mm, ky, tr("INTENSITY"), f"{analysis.intensity_score:.0f} / 100")

    y = box_y - GAP
    c.setFillColor(_hex(TEXT_CLR))
    c.setFont(FONT_B, FS_H2)
    c.drawString(m, y - 4 * mm, tr("OBSERVATIONS"))
    y -= 9 * mm
    for observation in analysis.observations:
        y = _draw_text(c, m + 2 * mm, y, W - 4 * mm, f"• {observation}") - 1
    if not analysis.observations:
        y = _draw_text(c, m + 2 * mm, y, W - 4 * mm, "—", color=MUTED_CLR)

    y -= GAP
    c.setFillColor(_hex(TEXT_CLR))
    c.setFont(FONT_B, FS_H2)
    c.drawString(m, y - 4 * mm, tr("RECOMMENDATIONS"))
    y -= 9 * mm
    _draw_text(c, m + 2 * mm, y, W - 4 * mm, _safe(analysis.recommendations))


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------


def build_report_pdf(data: ReportData) -> bytes:
    """Render *data* to PDF bytes; raises ``RuntimeError`` when rendering fails."""
    try:
        return _build_canvas_pdf(data)
    except Exception as exc:
        LOGGER.error("PDF generation failed.", exc_info=True)
        raise RuntimeError("PDF generation failed") from exc


def _build_canvas_pdf(data: ReportData) -> bytes:
    total = 2 if data.analysis is not None else 1
    buf = BytesIO()
    c = Canvas(buf, pagesize=PAGE_SIZE, pageCompression=0)
    c.setTitle(_tr(data.lang, "REPORT_TITLE", report_id=data.report_id))
    c.setAuthor("pkmonitor")
    c.setSubject(data.record_id)

    _page1(c, data)
    _draw_footer(c, 1, total, data)
    c.showPage()

    if data.analysis is not None:
        _page2(c, data, data.analysis)
        _draw_footer(c, 2, total, data)
        c.showPage()

    c.save()
    return buf.getvalue()
