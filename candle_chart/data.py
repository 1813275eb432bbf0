"""Price history acquisition for candlestick chart generation."""
from __future__ import annotations

import datetime as dt
import logging
import os
from typing import List

import pandas as pd
import requests
import yfinance as yf
from dateutil import tz
from dotenv import load_dotenv

from .config import PRICE_COLUMNS, REQUIRED_COLUMNS
from .errors import AuthError, InvalidInputError, NetworkError, NotFoundError
from .models import Bar
from .resample import validate_bars

FINNHUB_CANDLE_URL = "https://finnhub.io/api/v1/stock/candle"
FINNHUB_KEY_ENV = "FINNHUB_API_KEY"
REQUEST_TIMEOUT = 30.0

logger = logging.getLogger(__name__)


def _clean_prices(df: pd.DataFrame) -> pd.DataFrame:
    """Drop rows with missing or non-positive prices and widen High/Low to cover the body."""

    clean = df.dropna(subset=PRICE_COLUMNS)
    positive = (clean[PRICE_COLUMNS] > 0).all(axis=1)
    dropped = int((~positive).sum())
    if dropped:
        logger.warning("Dropped %d row(s) with non-positive prices.", dropped)
    clean = clean[positive].copy()

    high = clean[["Open", "High", "Close"]].max(axis=1)
    low = clean[["Open", "Low", "Close"]].min(axis=1)
    adjusted = int(((high != clean["High"]) | (low != clean["Low"])).sum())
    if adjusted:
        logger.warning("Clipped High/Low on %d row(s) to enclose Open and Close.", adjusted)
    clean["High"] = high
    clean["Low"] = low
    clean["Volume"] = clean["Volume"].fillna(0).clip(lower=0)
    return clean


def bars_from_frame(df: pd.DataFrame) -> List[Bar]:
    """Convert an OHLCV dataframe with a DatetimeIndex into bars."""

    missing_cols = [col for col in REQUIRED_COLUMNS if col not in df.columns]
    if missing_cols:
        raise InvalidInputError(f"Price data missing required columns: {missing_cols}")
    if not isinstance(df.index, pd.DatetimeIndex):
        raise InvalidInputError("Expected a DatetimeIndex on the price data.")

    clean = _clean_prices(df)
    return [
        Bar(
            date=ts.date(),
            open=float(row.Open),
            high=float(row.High),
            low=float(row.Low),
            close=float(row.Close),
            volume=int(row.Volume),
        )
        for ts, row in zip(clean.index, clean.itertuples(index=False))
    ]


def _fetch_yfinance(symbol: str, start: dt.date, end: dt.date) -> pd.DataFrame:
    try:
        df = yf.download(
            symbol,
            start=start.isoformat(),
            # yfinance treats ``end`` as exclusive
            end=(end + dt.timedelta(days=1)).isoformat(),
            interval="1d",
            auto_adjust=True,
            prepost=False,
            progress=False,
        )
    except Exception as exc:
        raise NetworkError(f"Failed to download data for {symbol!r}: {exc}") from exc

    if df is None or df.empty:
        raise NotFoundError(f"No data returned for ticker {symbol!r} in the specified range.")

    # Flatten MultiIndex columns (yfinance wraps cols for multi-ticker support)
    if isinstance(df.columns, pd.MultiIndex):
        df.columns = df.columns.get_level_values(0)

    if not isinstance(df.index, pd.DatetimeIndex):
        raise NetworkError("Expected DatetimeIndex from yfinance download.")
    if df.index.tz is not None:
        df.index = df.index.tz_localize(None)
    return df


def _fetch_finnhub(symbol: str, start: dt.date, end: dt.date) -> pd.DataFrame:
    load_dotenv()
    api_key = os.environ.get(FINNHUB_KEY_ENV)
    if not api_key:
        raise AuthError(f"Finnhub API key not found; set {FINNHUB_KEY_ENV}.")

    start_ts = dt.datetime.combine(start, dt.time.min, tzinfo=tz.UTC)
    end_ts = dt.datetime.combine(end, dt.time.max, tzinfo=tz.UTC)
    params = {
        "symbol": symbol,
        "resolution": "D",
        "from": int(start_ts.timestamp()),
        "to": int(end_ts.timestamp()),
        "token": api_key,
    }

    try:
        response = requests.get(FINNHUB_CANDLE_URL, params=params, timeout=REQUEST_TIMEOUT)
    except requests.RequestException as exc:
        raise NetworkError(f"Failed to reach Finnhub for {symbol!r}: {exc}") from exc

    if response.status_code in (401, 403):
        raise AuthError(f"Finnhub rejected the API key (HTTP {response.status_code}).")
    if not response.ok:
        raise NetworkError(f"Finnhub returned HTTP {response.status_code} for {symbol!r}.")

    try:
        payload = response.json()
    except ValueError as exc:
        raise NetworkError(f"Finnhub returned a non-JSON body for {symbol!r}.") from exc

    status = payload.get("s")
    if status == "no_data":
        raise NotFoundError(f"No data returned for ticker {symbol!r} in the specified range.")
    if status != "ok":
        raise NetworkError(f"Finnhub returned status {status!r} for {symbol!r}.")

    index = pd.to_datetime(payload["t"], unit="s", utc=True).tz_localize(None)
    return pd.DataFrame(
        {
            "Open": payload["o"],
            "High": payload["h"],
            "Low": payload["l"],
            "Close": payload["c"],
            "Volume": payload["v"],
        },
        index=pd.DatetimeIndex(index),
    )


_PROVIDERS = {
    "yfinance": _fetch_yfinance,
    "finnhub": _fetch_finnhub,
}


def fetch_history(
    symbol: str, start: dt.date, end: dt.date, provider: str = "yfinance"
) -> List[Bar]:
    """Fetch daily bars for ``symbol`` between ``start`` and ``end`` inclusive."""

    try:
        fetch = _PROVIDERS[provider]
    except KeyError:
        raise InvalidInputError(
            f"Unknown data provider {provider!r}; expected one of {sorted(_PROVIDERS)}"
        ) from None

    df = fetch(symbol, start, end)
    df = df[~df.index.normalize().duplicated(keep="first")]
    df = df.sort_index()
    bars = bars_from_frame(df)
    if not bars:
        raise NotFoundError(f"No complete bars returned for ticker {symbol!r}.")
    validate_bars(bars)
    return bars
