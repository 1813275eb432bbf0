"""Exception taxonomy shared by every stage of the chart pipeline."""
from __future__ import annotations

from typing import Optional


class ChartError(Exception):
    """Base class for failures raised while producing a chart.

    ``stage`` is filled in by the pipeline with the name of the step that
    failed (``fetch``, ``resample``, ``layout``, ``render`` or ``write``).
    """

    def __init__(self, message: str, stage: Optional[str] = None) -> None:
        super().__init__(message)
        self.stage = stage


class InvalidInputError(ChartError, ValueError):
    """Empty or unsorted bars, bad OHLC values or bad canvas dimensions."""


class CanvasTooSmallError(InvalidInputError):
    """The candles do not fit the geometry they are being drawn with."""


class NetworkError(ChartError, RuntimeError):
    """The quote provider could not be reached or answered with an error."""


class AuthError(NetworkError):
    """The quote provider rejected (or was never given) credentials."""


class NotFoundError(ChartError, LookupError):
    """The quote provider has no history for the requested symbol."""


class ImageWriteError(ChartError, OSError):
    """The rendered canvas could not be encoded or written to disk."""
