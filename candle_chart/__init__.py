"""Candlestick chart rendering from daily OHLCV price history."""
from .config import DEFAULT_RENDER_CONFIG, PipelineConfig, RenderConfig, default_output_path
from .data import bars_from_frame, fetch_history
from .errors import (
    AuthError,
    CanvasTooSmallError,
    ChartError,
    ImageWriteError,
    InvalidInputError,
    NetworkError,
    NotFoundError,
)
from .io_utils import save_image
from .layout import ChartGeometry, layout
from .models import Bar, Candle, Period
from .pipeline import run_pipeline
from .render import render_candlestick
from .resample import resample, validate_bars

__all__ = [
    "DEFAULT_RENDER_CONFIG",
    "PipelineConfig",
    "RenderConfig",
    "default_output_path",
    "bars_from_frame",
    "fetch_history",
    "AuthError",
    "CanvasTooSmallError",
    "ChartError",
    "ImageWriteError",
    "InvalidInputError",
    "NetworkError",
    "NotFoundError",
    "save_image",
    "ChartGeometry",
    "layout",
    "Bar",
    "Candle",
    "Period",
    "run_pipeline",
    "render_candlestick",
    "resample",
    "validate_bars",
]
