"""Pixel-space geometry for laying candles out on a fixed-size canvas."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence, Tuple

from .errors import CanvasTooSmallError, InvalidInputError
from .models import Candle

DEFAULT_MARGIN = 50
DEFAULT_PAD_FRACTION = 0.05
MIN_SLOT_WIDTH = 1.0

# Half-span substituted around a flat price, as a fraction of the price.
FLAT_SPAN_FRACTION = 0.01
FLAT_SPAN_MIN = 0.01


@dataclass(frozen=True)
class ChartGeometry:
    """Axis bounds and scales mapping candles onto the canvas.

    ``first_index`` is the position of the first laid-out candle in the
    sequence the geometry was computed for; candles before it were elided
    because the canvas could not give them a slot of at least the minimum
    width. ``candle_count`` is the length of that sequence.
    """

    price_min: float
    price_max: float
    x_slot_width: float
    y_scale: float
    canvas_width: int
    canvas_height: int
    margin: int
    first_index: int = 0
    candle_count: int = 0

    @property
    def visible_count(self) -> int:
        return self.candle_count - self.first_index

    @property
    def plot_box(self) -> Tuple[int, int, int, int]:
        """(left, top, right, bottom) of the plotting area in pixels."""

        return (
            self.margin,
            self.margin,
            self.canvas_width - self.margin,
            self.canvas_height - self.margin,
        )

    def price_to_y(self, price: float) -> float:
        return self.margin + (self.price_max - price) * self.y_scale

    def x_center(self, index: int) -> float:
        """Centre of the slot of the ``index``-th visible candle."""

        return self.margin + index * self.x_slot_width + self.x_slot_width / 2

    def visible(self, candles: Sequence[Candle]) -> Sequence[Candle]:
        return candles[self.first_index:]


def _price_bounds(candles: Sequence[Candle], pad_fraction: float) -> Tuple[float, float]:
    # open/close may fall outside low..high
    low = min(min(candle.low, candle.open, candle.close) for candle in candles)
    high = max(max(candle.high, candle.open, candle.close) for candle in candles)
    if math.isclose(high, low):
        half_span = max(abs(high) * FLAT_SPAN_FRACTION, FLAT_SPAN_MIN)
        low, high = low - half_span, high + half_span
    pad = (high - low) * pad_fraction
    return low - pad, high + pad


def layout(
    candles: Sequence[Candle],
    canvas_width: int,
    canvas_height: int,
    margin: int = DEFAULT_MARGIN,
    pad_fraction: float = DEFAULT_PAD_FRACTION,
    min_slot_width: float = MIN_SLOT_WIDTH,
    elide: bool = True,
) -> ChartGeometry:
    """Compute the geometry for drawing ``candles`` on a canvas.

    When the candles outnumber what the canvas can hold at ``min_slot_width``
    pixels each, the oldest candles are elided and only the most recent ones
    that fit are laid out (see ``ChartGeometry.first_index``). With
    ``elide=False`` the layout fails with ``CanvasTooSmallError`` instead.
    """

    if not candles:
        raise InvalidInputError("Cannot lay out an empty candle sequence.")
    if canvas_width <= 0 or canvas_height <= 0:
        raise InvalidInputError(
            f"Canvas dimensions must be positive, got {canvas_width}x{canvas_height}."
        )
    if margin < 0:
        raise InvalidInputError(f"Margin must be non-negative, got {margin}.")
    if pad_fraction < 0:
        raise InvalidInputError(f"Padding fraction must be non-negative, got {pad_fraction}.")
    if min_slot_width <= 0:
        raise InvalidInputError(f"Minimum slot width must be positive, got {min_slot_width}.")

    plot_width = canvas_width - 2 * margin
    plot_height = canvas_height - 2 * margin
    if plot_width < min_slot_width or plot_height <= 0:
        raise InvalidInputError(
            f"Margin {margin} leaves no drawable area on a {canvas_width}x{canvas_height} canvas."
        )

    capacity = int(plot_width // min_slot_width)
    first_index = max(0, len(candles) - capacity)
    if first_index and not elide:
        raise CanvasTooSmallError(
            f"{len(candles)} candles do not fit in {plot_width}px at "
            f"{min_slot_width}px per candle (room for {capacity})."
        )
    shown = candles[first_index:]

    price_min, price_max = _price_bounds(shown, pad_fraction)
    return ChartGeometry(
        price_min=price_min,
        price_max=price_max,
        x_slot_width=plot_width / len(shown),
        y_scale=plot_height / (price_max - price_min),
        canvas_width=canvas_width,
        canvas_height=canvas_height,
        margin=margin,
        first_index=first_index,
        candle_count=len(candles),
    )
