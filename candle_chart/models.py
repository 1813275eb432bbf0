"""Price observations, aggregated candles and resampling periods."""
from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Tuple

from .errors import InvalidInputError

BucketKey = Tuple[int, ...]


def _check_ohlc(kind: str, day: dt.date, open_: float, high: float, low: float, close: float) -> None:
    for name, value in (("open", open_), ("high", high), ("low", low), ("close", close)):
        if not value > 0:
            raise InvalidInputError(f"{kind} on {day}: {name} must be positive, got {value!r}")
    if low > open_ or close > high or low > high:
        raise InvalidInputError(
            f"{kind} on {day}: expected low <= open, close <= high, "
            f"got O={open_} H={high} L={low} C={close}"
        )


@dataclass(frozen=True)
class Bar:
    """A single trading day's OHLCV observation."""

    date: dt.date
    open: float
    high: float
    low: float
    close: float
    volume: int

    def __post_init__(self) -> None:
        _check_ohlc("Bar", self.date, self.open, self.high, self.low, self.close)
        if self.volume < 0:
            raise InvalidInputError(f"Bar on {self.date}: volume must be non-negative")


@dataclass(frozen=True)
class Candle:
    """OHLCV aggregated over one bucket of consecutive bars."""

    period_start: dt.date
    period_end: dt.date
    open: float
    high: float
    low: float
    close: float
    volume: int
    bar_count: int

    def __post_init__(self) -> None:
        if self.period_start > self.period_end:
            raise InvalidInputError(
                f"Candle period starts after it ends ({self.period_start} > {self.period_end})"
            )
        if self.bar_count < 1:
            raise InvalidInputError("Candle must aggregate at least one bar")
        _check_ohlc("Candle", self.period_start, self.open, self.high, self.low, self.close)
        if self.volume < 0:
            raise InvalidInputError(f"Candle on {self.period_start}: volume must be non-negative")

    @classmethod
    def from_bar(cls, bar: Bar) -> "Candle":
        return cls(
            period_start=bar.date,
            period_end=bar.date,
            open=bar.open,
            high=bar.high,
            low=bar.low,
            close=bar.close,
            volume=bar.volume,
            bar_count=1,
        )

    @property
    def is_up(self) -> bool:
        # A flat candle (close == open) is drawn as an up candle.
        return self.close >= self.open


def _daily_key(day: dt.date) -> BucketKey:
    return (day.year, day.month, day.day)


def _weekly_key(day: dt.date) -> BucketKey:
    iso = day.isocalendar()
    return (iso[0], iso[1])


def _monthly_key(day: dt.date) -> BucketKey:
    return (day.year, day.month)


class Period(str, Enum):
    """Resampling period; each member owns the function that buckets a date."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"

    def bucket_key(self, day: dt.date) -> BucketKey:
        return _BUCKET_KEYS[self](day)

    @classmethod
    def parse(cls, text: str) -> "Period":
        """Resolve a period name or short alias (``w``, ``1wk``, ...)."""

        key = text.strip().lower()
        try:
            return _ALIASES[key]
        except KeyError:
            raise InvalidInputError(
                f"Unsupported period {text!r}; expected one of "
                f"{', '.join(p.value for p in cls)}"
            ) from None


_BUCKET_KEYS: Dict[Period, Callable[[dt.date], BucketKey]] = {
    Period.DAILY: _daily_key,
    Period.WEEKLY: _weekly_key,
    Period.MONTHLY: _monthly_key,
}

_ALIASES: Dict[str, Period] = {
    "daily": Period.DAILY,
    "d": Period.DAILY,
    "1d": Period.DAILY,
    "weekly": Period.WEEKLY,
    "w": Period.WEEKLY,
    "1wk": Period.WEEKLY,
    "monthly": Period.MONTHLY,
    "m": Period.MONTHLY,
    "1mo": Period.MONTHLY,
}
