"""Single render pass: fetch, resample, lay out, render and write a chart."""
from __future__ import annotations

import contextlib
import datetime as dt
import logging
from typing import Callable, Iterator, List, Optional

from PIL import Image

from .config import PipelineConfig
from .data import fetch_history
from .errors import ChartError
from .io_utils import save_image
from .layout import layout
from .models import Bar
from .render import render_candlestick
from .resample import resample

logger = logging.getLogger(__name__)

Fetcher = Callable[[str, dt.date, dt.date, str], List[Bar]]
Sink = Callable[[Image.Image, str], None]


@contextlib.contextmanager
def _stage(name: str) -> Iterator[None]:
    """Tag any chart error escaping the block with the stage it came from."""

    try:
        yield
    except ChartError as exc:
        if exc.stage is None:
            exc.stage = name
        raise


def run_pipeline(
    cfg: PipelineConfig,
    fetcher: Fetcher = fetch_history,
    sink: Sink = save_image,
    today: Optional[dt.date] = None,
) -> str:
    """Produce the chart described by ``cfg`` and return the path written."""

    start, end = cfg.resolved_window(today or dt.date.today())
    output_path = cfg.resolved_output_path()
    render_cfg = cfg.render

    logger.info(
        "Fetching %s's price data from %s to %s via %s",
        cfg.symbol,
        start.isoformat(),
        end.isoformat(),
        cfg.provider,
    )
    with _stage("fetch"):
        bars = fetcher(cfg.symbol, start, end, cfg.provider)
    logger.info("Fetched %d daily bars for %s.", len(bars), cfg.symbol)

    with _stage("resample"):
        candles = resample(bars, cfg.period)
    logger.info("Resampled into %d %s candles.", len(candles), cfg.period.value)

    with _stage("layout"):
        geometry = layout(
            candles,
            cfg.width,
            cfg.height,
            margin=render_cfg.margin,
            pad_fraction=render_cfg.pad_fraction,
            min_slot_width=render_cfg.min_slot_width,
        )
    if geometry.first_index:
        logger.warning(
            "Canvas too narrow for %d candles; dropped the %d oldest.",
            len(candles),
            geometry.first_index,
        )
    logger.debug(
        "Price axis %.4f..%.4f, slot width %.2fpx, y scale %.4fpx per unit.",
        geometry.price_min,
        geometry.price_max,
        geometry.x_slot_width,
        geometry.y_scale,
    )

    with _stage("render"):
        image = render_candlestick(
            candles, geometry, render_cfg, title=f"{cfg.symbol} Stock Price"
        )

    with _stage("write"):
        sink(image, output_path)
    logger.info("Result has been saved to %s", output_path)
    return output_path
