#!/usr/bin/env python3
"""make_candle_chart.py
=================================

Entry-point script for rendering a candlestick chart of a ticker's daily price
history, resampled to daily, weekly or monthly candles. The heavy lifting lives
in the ``candle_chart`` package.

Example usage
-------------

* Weekly chart of the last year for AAPL, written to ``./static/AAPL.png``::

    python make_candle_chart.py

* Monthly chart for a custom range::

    python make_candle_chart.py MSFT --period monthly --start 2020-01-01 --end 2023-12-31

The script requires the following packages: ``yfinance``, ``pandas``, ``numpy``,
``matplotlib``, ``pillow``, ``requests``, ``python-dotenv`` and ``python-dateutil``.
"""
from __future__ import annotations

from candle_chart.cli import main


if __name__ == "__main__":
    main()
