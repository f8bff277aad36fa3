"""PDF report chart functions."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from reportlab.graphics.shapes import Drawing, Line, PolyLine, Rect, String
from reportlab.lib import colors

from .theme import REPORT_COLORS

if TYPE_CHECKING:
    from collections.abc import Callable


def downsample(
    points: list[tuple[float, float]], max_points: int = 600
) -> list[tuple[float, float]]:
    if len(points) <= max_points:
        return points
    step = max(1, len(points) // max_points)
    sampled = [points[i] for i in range(0, len(points), step)]
    if sampled[-1] != points[-1]:
        sampled.append(points[-1])
    return sampled


def line_plot(
    *,
    title: str,
    x_label: str,
    y_label: str,
    series: list[tuple[str, str, list[tuple[float, float]]]],
    width: float,
    tr: Callable[..., str],
    reference_lines: list[tuple[str, float]] | None = None,
    height: int = 175,
) -> Any:
    """Line chart of ``(position, value)`` series.

    *reference_lines* are ``(color, value)`` pairs drawn as dashed horizontal
    lines at ``+value`` and ``-value``.
    """
    drawing = Drawing(width, height)
    plot_x0 = 40
    plot_y0 = 28
    plot_w = width - 56
    plot_h = height - 52

    drawing.add(
        String(
            4,
            height - 14,
            title,
            fontName="Helvetica-Bold",
            fontSize=9,
            fillColor=colors.HexColor(REPORT_COLORS["text_primary"]),
        )
    )

    active_series = [(name, color, downsample(points)) for name, color, points in series if points]
    if not active_series:
        drawing.add(
            String(
                4,
                height - 30,
                tr("PLOT_NO_DATA_AVAILABLE"),
                fontSize=8,
                fillColor=colors.HexColor(REPORT_COLORS["text_secondary"]),
            )
        )
        return drawing

    refs = reference_lines or []
    all_points = [point for _name, _color, points in active_series for point in points]
    x_min = min(point[0] for point in all_points)
    x_max = max(point[0] for point in all_points)
    y_extent = max(abs(point[1]) for point in all_points)
    for _color, value in refs:
        y_extent = max(y_extent, abs(value))
    y_extent = y_extent * 1.1 if y_extent > 0 else 1.0
    y_min, y_max = -y_extent, y_extent
    if abs(x_max - x_min) < 1e-9:
        x_min -= 0.0005
        x_max += 0.0005

    def map_x(x_val: float) -> float:
        return plot_x0 + ((x_val - x_min) / (x_max - x_min) * plot_w)

    def map_y(y_val: float) -> float:
        return plot_y0 + ((y_val - y_min) / (y_max - y_min) * plot_h)

    grid = colors.HexColor(REPORT_COLORS["table_row_border"])
    muted = colors.HexColor(REPORT_COLORS["text_muted"])
    for idx in range(5):
        frac = idx / 4.0
        gx = plot_x0 + (frac * plot_w)
        gy = plot_y0 + (frac * plot_h)
        drawing.add(Line(gx, plot_y0, gx, plot_y0 + plot_h, strokeColor=grid, strokeWidth=0.4))
        drawing.add(Line(plot_x0, gy, plot_x0 + plot_w, gy, strokeColor=grid, strokeWidth=0.4))
        drawing.add(
            String(
                gx - 12,
                plot_y0 - 11,
                f"{(x_min + frac * (x_max - x_min)):.3f}",
                fontSize=6.5,
                fillColor=muted,
            )
        )
        drawing.add(
            String(
                plot_x0 - 24,
                gy - 2,
                f"{(y_min + frac * (y_max - y_min)):.1f}",
                fontSize=6.5,
                fillColor=muted,
            )
        )

    axis = colors.HexColor(REPORT_COLORS["axis"])
    drawing.add(Line(plot_x0, plot_y0, plot_x0, plot_y0 + plot_h, strokeColor=axis))
    drawing.add(Line(plot_x0, map_y(0.0), plot_x0 + plot_w, map_y(0.0), strokeColor=axis))

    for color, value in refs:
        for signed in (value, -value):
            drawing.add(
                Line(
                    plot_x0,
                    map_y(signed),
                    plot_x0 + plot_w,
                    map_y(signed),
                    strokeColor=colors.HexColor(color),
                    strokeWidth=0.8,
                    strokeDashArray=[3, 2],
                )
            )

    secondary = colors.HexColor(REPORT_COLORS["text_secondary"])
    drawing.add(String(plot_x0 + (plot_w / 2) - 14, 4, x_label, fontSize=7, fillColor=secondary))
    drawing.add(String(4, plot_y0 + plot_h + 4, y_label, fontSize=7, fillColor=secondary))

    legend_x = width - 110
    legend_y = height - 14
    for idx, (name, color, points) in enumerate(active_series):
        if len(points) == 1:
            points = points * 2
        flat_points: list[float] = []
        for x_val, y_val in points:
            flat_points.append(map_x(x_val))
            flat_points.append(map_y(y_val))
        drawing.add(PolyLine(flat_points, strokeColor=colors.HexColor(color), strokeWidth=0.9))
        drawing.add(
            Rect(
                legend_x,
                legend_y - 2 - (idx * 10),
                8,
                8,
                fillColor=colors.HexColor(color),
                strokeColor=colors.HexColor(color),
            )
        )
        drawing.add(
            String(legend_x + 11, legend_y - 1 - (idx * 10), name, fontSize=7, fillColor=secondary)
        )
    return drawing
