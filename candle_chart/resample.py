"""Aggregation of daily bars into coarser-period candles."""
from __future__ import annotations

from typing import Dict, List, Sequence

import pandas as pd

from .errors import InvalidInputError
from .models import Bar, BucketKey, Candle, Period


def validate_bars(bars: Sequence[Bar]) -> None:
    """Check the bars are non-empty and strictly ascending by date."""

    if not bars:
        raise InvalidInputError("No bars to resample.")

    for previous, current in zip(bars, bars[1:]):
        if current.date <= previous.date:
            raise InvalidInputError(
                f"Bars must be strictly ascending by date: {current.date} follows {previous.date}"
            )


def _bars_to_frame(bars: Sequence[Bar], period: Period) -> pd.DataFrame:
    # number buckets in order of first appearance
    bucket_ids: Dict[BucketKey, int] = {}
    buckets = [bucket_ids.setdefault(period.bucket_key(bar.date), len(bucket_ids)) for bar in bars]
    return pd.DataFrame(
        {
            "date": [bar.date for bar in bars],
            "bucket": buckets,
            "open": [bar.open for bar in bars],
            "high": [bar.high for bar in bars],
            "low": [bar.low for bar in bars],
            "close": [bar.close for bar in bars],
            "volume": [bar.volume for bar in bars],
        }
    )


def resample(bars: Sequence[Bar], period: Period) -> List[Candle]:
    """Group ascending daily bars into one candle per non-empty bucket.

    Buckets come only from the bars present: missing trading days are not
    gap-filled, and a week or month cut off by the start or end of the input
    yields a candle built from the partial data.
    """

    validate_bars(bars)
    if period is Period.DAILY:
        return [Candle.from_bar(bar) for bar in bars]

    frame = _bars_to_frame(bars, period)
    agg = frame.groupby("bucket", sort=True).agg(
        period_start=("date", "first"),
        period_end=("date", "last"),
        open=("open", "first"),
        high=("high", "max"),
        low=("low", "min"),
        close=("close", "last"),
        volume=("volume", "sum"),
        bar_count=("date", "count"),
    )

    return [
        Candle(
            period_start=row.period_start,
            period_end=row.period_end,
            open=float(row.open),
            high=float(row.high),
            low=float(row.low),
            close=float(row.close),
            volume=int(row.volume),
            bar_count=int(row.bar_count),
        )
        for row in agg.itertuples(index=False)
    ]
