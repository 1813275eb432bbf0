"""Command line interface for rendering a candlestick chart of a ticker.

Example usage
-------------

* Weekly chart of the last year for the default symbol::

    python make_candle_chart.py

* Monthly chart for a custom range written to a chosen file::

    python make_candle_chart.py MSFT --period monthly --start 2020-01-01 --end 2023-12-31 --output ./charts/msft.png

* Daily chart from Finnhub (reads ``FINNHUB_API_KEY`` from the environment or ``.env``)::

    python make_candle_chart.py TSLA --period daily --provider finnhub
"""
from __future__ import annotations

import argparse
import datetime as dt
import logging
from typing import List, Optional

from .config import DEFAULT_RENDER_CONFIG, DEFAULT_SYMBOL, PROVIDERS, PipelineConfig, RenderConfig
from .errors import ChartError
from .models import Period
from .pipeline import run_pipeline


LOGGER_NAME = "make_candle_chart"


def _parse_date(text: str) -> dt.date:
    try:
        return dt.date.fromisoformat(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid date {text!r}; expected YYYY-MM-DD") from None


def _parse_period(text: str) -> Period:
    try:
        return Period.parse(text)
    except ChartError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from None


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""

    defaults = DEFAULT_RENDER_CONFIG
    parser = argparse.ArgumentParser(description="Render a candlestick chart for a ticker symbol.")
    parser.add_argument(
        "symbol",
        nargs="?",
        default=DEFAULT_SYMBOL,
        help=f"Ticker symbol (default: {DEFAULT_SYMBOL}).",
    )
    parser.add_argument(
        "--period",
        type=_parse_period,
        default=Period.WEEKLY,
        help="Candle period: daily, weekly or monthly (default: weekly).",
    )
    parser.add_argument(
        "--output",
        default=None,
        help="Output image path (default: ./static/<SYMBOL>.png).",
    )
    parser.add_argument(
        "--start", type=_parse_date, default=None, help="Start date (YYYY-MM-DD, inclusive)."
    )
    parser.add_argument(
        "--end", type=_parse_date, default=None, help="End date (YYYY-MM-DD, inclusive)."
    )
    parser.add_argument(
        "--provider",
        choices=PROVIDERS,
        default="yfinance",
        help="Price history provider (default: yfinance).",
    )
    parser.add_argument("--width", type=int, default=1024, help="Canvas width in pixels.")
    parser.add_argument("--height", type=int, default=768, help="Canvas height in pixels.")
    parser.add_argument(
        "--margin", type=int, default=defaults.margin, help="Margin reserved for axes (pixels)."
    )
    parser.add_argument("--bg", default=defaults.bg, help="Background colour.")
    parser.add_argument("--up_color", default=defaults.up_color, help="Colour for up candles.")
    parser.add_argument(
        "--down_color", default=defaults.down_color, help="Colour for down candles."
    )
    parser.add_argument(
        "--wick_width", type=int, default=defaults.wick_width, help="Wick line width (pixels)."
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")

    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> PipelineConfig:
    """Translate parsed arguments into a pipeline configuration."""

    render_cfg = RenderConfig(
        bg=args.bg,
        up_color=args.up_color,
        down_color=args.down_color,
        wick_width=args.wick_width,
        margin=args.margin,
    )
    return PipelineConfig(
        symbol=args.symbol.upper(),
        period=args.period,
        output_path=args.output,
        start=args.start,
        end=args.end,
        provider=args.provider,
        width=args.width,
        height=args.height,
        render=render_cfg,
    )


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for the CLI utility."""

    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="[%(levelname)s] %(message)s",
    )
    logger = logging.getLogger(LOGGER_NAME)

    cfg = build_config(args)
    start, end = cfg.resolved_window(dt.date.today())
    if end < start:
        raise SystemExit(f"End date {end} must be greater than or equal to start date {start}.")
    logger.info("Rendering %s %s chart", cfg.symbol, cfg.period.value)

    try:
        run_pipeline(cfg)
    except ChartError as exc:
        raise SystemExit(f"{exc.stage or 'chart'} failed: {exc}") from exc
