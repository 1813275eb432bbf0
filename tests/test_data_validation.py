import datetime as dt

import numpy as np
import pandas as pd
import pytest
import requests

from candle_chart import data
from candle_chart.data import bars_from_frame, fetch_history
from candle_chart.errors import (
    AuthError,
    InvalidInputError,
    NetworkError,
    NotFoundError,
)


def make_valid_df():
    index = pd.date_range("2023-01-02", periods=5, freq="D")
    values = {
        "Open": [1, 2, 3, 4, 5],
        "High": [2, 3, 4, 5, 6],
        "Low": [0.5, 1.5, 2.5, 3.5, 4.5],
        "Close": [1.5, 2.5, 3.5, 4.5, 5.5],
        "Volume": [100, 120, 140, 160, 180],
    }
    return pd.DataFrame(values, index=index)


class FakeResponse:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload

    @property
    def ok(self):
        return 200 <= self.status_code < 400

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


FINNHUB_OK = {
    "s": "ok",
    "t": [1672617600, 1672704000],  # 2023-01-02, 2023-01-03 UTC
    "o": [100.0, 102.0],
    "h": [105.0, 104.0],
    "l": [99.0, 101.0],
    "c": [102.0, 103.0],
    "v": [1000, 1100],
}


def test_bars_from_frame_converts_rows():
    bars = bars_from_frame(make_valid_df())
    assert len(bars) == 5
    assert bars[0].date == dt.date(2023, 1, 2)
    assert (bars[0].open, bars[0].high, bars[0].low, bars[0].close) == (1.0, 2.0, 0.5, 1.5)
    assert bars[-1].volume == 180
    assert isinstance(bars[-1].volume, int)


def test_bars_from_frame_drops_incomplete_rows():
    df = make_valid_df()
    df.iloc[2, df.columns.get_loc("Close")] = np.nan
    bars = bars_from_frame(df)
    assert [b.date.day for b in bars] == [2, 3, 5, 6]


def test_bars_from_frame_requires_columns():
    with pytest.raises(InvalidInputError):
        bars_from_frame(make_valid_df().drop(columns=["Volume"]))


def test_unknown_provider_rejected():
    with pytest.raises(InvalidInputError):
        fetch_history("AAPL", dt.date(2023, 1, 1), dt.date(2023, 2, 1), provider="bloomberg")


class TestYFinance:
    def test_flattens_dedupes_and_sorts(self, monkeypatch):
        df = make_valid_df()
        shuffled = pd.concat([df.iloc[[3, 0, 1]], df.iloc[[0]], df.iloc[[4, 2]]])
        shuffled.columns = pd.MultiIndex.from_product([shuffled.columns, ["AAPL"]])
        calls = {}

        def fake_download(ticker, **kwargs):
            calls["ticker"] = ticker
            calls.update(kwargs)
            return shuffled

        monkeypatch.setattr(data.yf, "download", fake_download)
        bars = fetch_history("AAPL", dt.date(2023, 1, 2), dt.date(2023, 1, 6))

        assert [b.date for b in bars] == [dt.date(2023, 1, d) for d in range(2, 7)]
        assert calls["ticker"] == "AAPL"
        assert calls["interval"] == "1d"
        assert calls["end"] == "2023-01-07"

    def test_download_error_becomes_network_error(self, monkeypatch):
        def fake_download(ticker, **kwargs):
            raise ConnectionError("boom")

        monkeypatch.setattr(data.yf, "download", fake_download)
        with pytest.raises(NetworkError):
            fetch_history("AAPL", dt.date(2023, 1, 2), dt.date(2023, 1, 6))

    def test_empty_download_is_not_found(self, monkeypatch):
        monkeypatch.setattr(data.yf, "download", lambda ticker, **kwargs: pd.DataFrame())
        with pytest.raises(NotFoundError):
            fetch_history("NOPE", dt.date(2023, 1, 2), dt.date(2023, 1, 6))


class TestFinnhub:
    @pytest.fixture(autouse=True)
    def no_dotenv(self, monkeypatch):
        monkeypatch.setattr(data, "load_dotenv", lambda: False)
        monkeypatch.setenv("FINNHUB_API_KEY", "secret")

    def fetch(self):
        return fetch_history("AAPL", dt.date(2023, 1, 2), dt.date(2023, 1, 3), provider="finnhub")

    def test_ok_payload(self, monkeypatch):
        seen = {}

        def fake_get(url, params, timeout):
            seen.update(params)
            return FakeResponse(payload=FINNHUB_OK)

        monkeypatch.setattr(data.requests, "get", fake_get)
        bars = self.fetch()

        assert [b.date for b in bars] == [dt.date(2023, 1, 2), dt.date(2023, 1, 3)]
        assert bars[1].close == 103.0
        assert seen["token"] == "secret"
        assert seen["resolution"] == "D"
        assert seen["from"] == 1672617600

    def test_no_data_is_not_found(self, monkeypatch):
        monkeypatch.setattr(
            data.requests, "get", lambda url, params, timeout: FakeResponse(payload={"s": "no_data"})
        )
        with pytest.raises(NotFoundError):
            self.fetch()

    @pytest.mark.parametrize("status", [401, 403])
    def test_rejected_key_is_auth_error(self, monkeypatch, status):
        monkeypatch.setattr(
            data.requests, "get", lambda url, params, timeout: FakeResponse(status_code=status)
        )
        with pytest.raises(AuthError):
            self.fetch()

    def test_missing_key_is_auth_error(self, monkeypatch):
        monkeypatch.delenv("FINNHUB_API_KEY")
        with pytest.raises(AuthError):
            self.fetch()

    def test_server_error_is_network_error(self, monkeypatch):
        monkeypatch.setattr(
            data.requests, "get", lambda url, params, timeout: FakeResponse(status_code=502)
        )
        with pytest.raises(NetworkError) as excinfo:
            self.fetch()
        assert not isinstance(excinfo.value, AuthError)

    def test_connection_failure_is_network_error(self, monkeypatch):
        def fake_get(url, params, timeout):
            raise requests.ConnectionError("unreachable")

        monkeypatch.setattr(data.requests, "get", fake_get)
        with pytest.raises(NetworkError):
            self.fetch()


def test_bars_from_frame_repairs_noisy_rows(caplog):
    df = make_valid_df().astype({"Open": float, "High": float, "Low": float, "Close": float})
    df.iloc[1, df.columns.get_loc("Close")] = 3.00000000001  # above High=3 by float noise
    df.iloc[2, df.columns.get_loc("Low")] = 3.6  # above Open=3
    df.iloc[3, df.columns.get_loc("Open")] = 0.0

    with caplog.at_level("WARNING", logger="candle_chart.data"):
        bars = bars_from_frame(df)

    assert [b.date.day for b in bars] == [2, 3, 4, 6]
    assert bars[1].high == bars[1].close == 3.00000000001
    assert bars[2].low == 3.0
    assert "Dropped 1 row(s)" in caplog.text
    assert "Clipped High/Low on 2 row(s)" in caplog.text


def test_fetch_history_survives_adjusted_price_noise(monkeypatch):
    df = make_valid_df().astype({"Close": float})
    df.iloc[1, df.columns.get_loc("Close")] = 3.00000000001
    monkeypatch.setattr(data.yf, "download", lambda ticker, **kwargs: df)

    bars = fetch_history("AAPL", dt.date(2023, 1, 2), dt.date(2023, 1, 6))
    assert len(bars) == 5
