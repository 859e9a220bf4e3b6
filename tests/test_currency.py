import pytest
import requests

import bizpulse.currency as currency
from bizpulse.config import CurrencySettings
from bizpulse.currency import Currency, convert, format_currency


class _FakeResponse:
    def __init__(self, payload, status_ok=True):
        self._payload = payload
        self._status_ok = status_ok

    def raise_for_status(self):
        if not self._status_ok:
            raise requests.HTTPError("500 Server Error")

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


def test_convert_secondary_applies_rate() -> None:
    assert convert(100, Currency.SECONDARY, 15.5) == 1550


def test_convert_base_ignores_rate() -> None:
    assert convert(100, Currency.BASE, 15.5) == 100
    assert convert(100, "BASE", 15.5) == 100


def test_fetch_exchange_rate_reads_secondary_code(monkeypatch) -> None:
    calls = {}

    def fake_get(url, timeout):
        calls["url"] = url
        calls["timeout"] = timeout
        return _FakeResponse({"rates": {"PKR": 16.25, "USD": 0.05}})

    monkeypatch.setattr(currency.requests, "get", fake_get)

    rate = currency.fetch_exchange_rate(CurrencySettings())

    assert rate == 16.25
    assert calls["url"] == "https://open.er-api.com/v6/latest/ZAR"
    assert calls["timeout"] == 10.0


@pytest.mark.parametrize(
    "response",
    [
        _FakeResponse({"rates": {"USD": 0.05}}),
        _FakeResponse({}, status_ok=False),
        _FakeResponse(ValueError("not json")),
        _FakeResponse({"rates": None}),
    ],
)
def test_fetch_exchange_rate_falls_back_on_bad_response(monkeypatch, response) -> None:
    monkeypatch.setattr(currency.requests, "get", lambda url, timeout: response)
    settings = CurrencySettings(fallback_rate=14.0)

    assert currency.fetch_exchange_rate(settings) == 14.0


def test_fetch_exchange_rate_falls_back_on_network_error(monkeypatch, caplog) -> None:
    def boom(url, timeout):
        raise requests.ConnectionError("offline")

    monkeypatch.setattr(currency.requests, "get", boom)

    with caplog.at_level("WARNING", logger="bizpulse.currency"):
        assert currency.fetch_exchange_rate(CurrencySettings()) == 15.5

    assert "fallback" in caplog.text


def test_format_currency() -> None:
    assert format_currency(1234.5, "ZAR") == "R 1,234.50"
    assert format_currency(-10, "PKR") == "-Rs 10.00"
    assert format_currency(3, "CHF", decimals=0) == "CHF 3"
