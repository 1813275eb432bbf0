"""Rendering helpers for drawing candlestick charts onto a raster canvas."""
from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

from matplotlib import colors as mcolors
import numpy as np
from PIL import Image, ImageDraw, ImageFont

from .config import RenderConfig
from .errors import InvalidInputError
from .layout import ChartGeometry
from .models import Candle

RGB = Tuple[int, int, int]

TICK_LABEL_GAP = 4
DATE_LABEL_GAP = 6
MIN_LABEL_SPACING = 8


def _to_rgb(color: str) -> RGB:
    """Resolve a matplotlib-compatible colour string to 8-bit RGB."""

    try:
        rgb = mcolors.to_rgb(color)
    except ValueError as exc:
        raise InvalidInputError(f"Unknown colour {color!r}") from exc
    return tuple(int(round(channel * 255)) for channel in rgb)


def _text_size(draw: ImageDraw.ImageDraw, text: str, font) -> Tuple[int, int]:
    left, top, right, bottom = draw.textbbox((0, 0), text, font=font)
    return right - left, bottom - top


def _draw_grid(
    draw: ImageDraw.ImageDraw, geometry: ChartGeometry, cfg: RenderConfig, font
) -> None:
    """Horizontal gridlines at evenly spaced prices, labelled in the left margin."""

    left, _, right, _ = geometry.plot_box
    grid_rgb = _to_rgb(cfg.grid_color)
    text_rgb = _to_rgb(cfg.text_color)
    for price in np.linspace(geometry.price_min, geometry.price_max, cfg.price_ticks):
        y = int(round(geometry.price_to_y(float(price))))
        draw.line([(left, y), (right, y)], fill=grid_rgb, width=1)

        label = f"{price:.{cfg.price_precision}f}"
        width, height = _text_size(draw, label, font)
        x = max(0, left - TICK_LABEL_GAP - width)
        draw.text((x, y - height // 2), label, fill=text_rgb, font=font)


def _draw_candles(
    draw: ImageDraw.ImageDraw,
    candles: Sequence[Candle],
    geometry: ChartGeometry,
    cfg: RenderConfig,
) -> None:
    up_rgb = _to_rgb(cfg.up_color)
    down_rgb = _to_rgb(cfg.down_color)
    half_width = max(1.0, cfg.body_fraction * geometry.x_slot_width)

    for index, candle in enumerate(candles):
        color = up_rgb if candle.is_up else down_rgb
        x = geometry.x_center(index)
        x_px = int(round(x))

        y_high = int(round(geometry.price_to_y(candle.high)))
        y_low = int(round(geometry.price_to_y(candle.low)))
        draw.line([(x_px, y_high), (x_px, y_low)], fill=color, width=cfg.wick_width)

        # y_top == y_bottom for a flat body, which draws a single pixel row
        y_top = int(round(geometry.price_to_y(max(candle.open, candle.close))))
        y_bottom = int(round(geometry.price_to_y(min(candle.open, candle.close))))
        draw.rectangle(
            [int(round(x - half_width)), y_top, int(round(x + half_width)), y_bottom],
            fill=color,
        )


def _label_candidates(candles: Sequence[Candle]) -> List[int]:
    """Indices of the last candle in each calendar month, plus the final candle."""

    indices = []
    for index, candle in enumerate(candles):
        if index == len(candles) - 1:
            indices.append(index)
            continue
        following = candles[index + 1].period_start
        if (candle.period_start.year, candle.period_start.month) != (following.year, following.month):
            indices.append(index)
    return indices


def _place_date_labels(
    draw: ImageDraw.ImageDraw,
    candles: Sequence[Candle],
    geometry: ChartGeometry,
    cfg: RenderConfig,
    font,
) -> List[Tuple[float, float, str]]:
    """(left, width, text) of each date label kept after thinning out overlaps."""

    placed: List[Tuple[float, float, str]] = []
    for index in _label_candidates(candles):
        label = candles[index].period_start.strftime(cfg.date_format)
        width, _ = _text_size(draw, label, font)
        left = geometry.x_center(index) - width / 2
        left = min(max(left, 0.0), float(geometry.canvas_width - width))
        if placed and left < placed[-1][0] + placed[-1][1] + MIN_LABEL_SPACING:
            continue
        placed.append((left, width, label))
    return placed


def _draw_date_labels(
    draw: ImageDraw.ImageDraw,
    candles: Sequence[Candle],
    geometry: ChartGeometry,
    cfg: RenderConfig,
    font,
) -> None:
    """Date labels below the plot area."""

    _, _, _, bottom = geometry.plot_box
    text_rgb = _to_rgb(cfg.text_color)
    for left, _, label in _place_date_labels(draw, candles, geometry, cfg, font):
        draw.text((int(round(left)), bottom + DATE_LABEL_GAP), label, fill=text_rgb, font=font)


def _draw_title(
    draw: ImageDraw.ImageDraw, title: str, geometry: ChartGeometry, cfg: RenderConfig, font
) -> None:
    width, height = _text_size(draw, title, font)
    x = (geometry.canvas_width - width) // 2
    y = max(0, (geometry.margin - height) // 2)
    draw.text((x, y), title, fill=_to_rgb(cfg.text_color), font=font)


def render_candlestick(
    candles: Sequence[Candle],
    geometry: ChartGeometry,
    cfg: RenderConfig,
    title: Optional[str] = None,
) -> Image.Image:
    """Render a candlestick chart into a new PIL image.

    ``geometry`` must have been computed by ``layout`` for this exact candle
    sequence; candles it elided are not drawn. Candles with ``close == open``
    are drawn in the up colour.
    """

    if len(candles) != geometry.candle_count:
        raise InvalidInputError(
            f"Geometry was laid out for {geometry.candle_count} candles, got {len(candles)}."
        )

    image = Image.new("RGB", (geometry.canvas_width, geometry.canvas_height), _to_rgb(cfg.bg))
    draw = ImageDraw.Draw(image)
    font = ImageFont.load_default()
    shown = geometry.visible(candles)

    _draw_grid(draw, geometry, cfg, font)
    draw.rectangle(geometry.plot_box, outline=_to_rgb(cfg.text_color), width=1)
    _draw_candles(draw, shown, geometry, cfg)
    _draw_date_labels(draw, shown, geometry, cfg, font)
    if title:
        _draw_title(draw, title, geometry, cfg, font)

    return image
