"""Configuration objects and shared constants for candlestick chart generation."""
from __future__ import annotations

import datetime as dt
import os
from dataclasses import dataclass, field
from typing import Final, List, Optional, Tuple

from dateutil.relativedelta import relativedelta

from .layout import DEFAULT_MARGIN, DEFAULT_PAD_FRACTION, MIN_SLOT_WIDTH
from .models import Period

PRICE_COLUMNS: Final[List[str]] = ["Open", "High", "Low", "Close"]
REQUIRED_COLUMNS: Final[List[str]] = PRICE_COLUMNS + ["Volume"]

DEFAULT_SYMBOL: Final[str] = "AAPL"
DEFAULT_OUTPUT_DIR: Final[str] = "static"
DEFAULT_LOOKBACK: Final[relativedelta] = relativedelta(years=1)
PROVIDERS: Final[Tuple[str, ...]] = ("yfinance", "finnhub")


@dataclass(frozen=True)
class RenderConfig:
    """Container for rendering related configuration."""

    bg: str = "white"
    up_color: str = "green"
    down_color: str = "red"
    grid_color: str = "#e0e0e0"
    text_color: str = "black"
    wick_width: int = 1
    body_fraction: float = 0.35
    price_ticks: int = 5
    price_precision: int = 2
    date_format: str = "%d-%m-%Y"
    margin: int = DEFAULT_MARGIN
    pad_fraction: float = DEFAULT_PAD_FRACTION
    min_slot_width: float = MIN_SLOT_WIDTH


DEFAULT_RENDER_CONFIG: Final[RenderConfig] = RenderConfig()


def default_output_path(symbol: str) -> str:
    """Output file used when the caller does not name one."""

    return os.path.join(DEFAULT_OUTPUT_DIR, f"{symbol}.png")


@dataclass(frozen=True)
class PipelineConfig:
    """Everything a single render pass needs, passed in explicitly."""

    symbol: str = DEFAULT_SYMBOL
    period: Period = Period.WEEKLY
    output_path: Optional[str] = None
    start: Optional[dt.date] = None
    end: Optional[dt.date] = None
    provider: str = "yfinance"
    width: int = 1024
    height: int = 768
    render: RenderConfig = field(default=DEFAULT_RENDER_CONFIG)

    def resolved_output_path(self) -> str:
        return self.output_path or default_output_path(self.symbol)

    def resolved_window(self, today: dt.date) -> Tuple[dt.date, dt.date]:
        """Fill a missing start/end with a one-year lookback ending ``today``."""

        end = self.end or today
        start = self.start or end - DEFAULT_LOOKBACK
        return start, end
