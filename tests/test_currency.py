"""
tests/test_currency.py

Unit tests for CurrencyConverter and half-up rounding.

Coverage
--------
- fixed-rate conversion, rounded and unrounded
- aggregate normalization re-derives KPIs
- already-normalized aggregates pass through
- invalid rate and unknown source currency
"""

from datetime import date

import pytest

from adreport.core.currency import CurrencyConverter, channel_currency, round_half_up
from adreport.core.metric_registry import Channel
from adreport.models.analysis_models import Aggregate, Granularity
from adreport.analyzer.kpi_engine import derive_kpis


def _social_total(spend: float, clicks: int = 0, currency: str = "USD") -> Aggregate:
    return derive_kpis(
        Aggregate(
            channel=Channel.SOCIAL,
            granularity=Granularity.PERIOD,
            bucket_start=date(2025, 11, 1),
            bucket_end=date(2025, 11, 30),
            currency=currency,
            spend=spend,
            clicks=clicks,
            impressions=clicks * 10,
        )
    )


# ---------------------------------------------------------------------------
# Rounding
# ---------------------------------------------------------------------------


class TestRoundHalfUp:
    @pytest.mark.parametrize(
        "value, digits, expected",
        [(2.5, 0, 3.0), (3.5, 0, 4.0), (0.25, 1, 0.3), (4.04, 1, 4.0), (99.5, 0, 100.0)],
    )
    def test_half_goes_up(self, value, digits, expected) -> None:
        assert round_half_up(value, digits) == expected


# ---------------------------------------------------------------------------
# Conversion
# ---------------------------------------------------------------------------


class TestConverter:
    def test_default_rate(self) -> None:
        converter = CurrencyConverter()
        assert converter.rate == 1500.0
        assert converter.convert(2.0) == pytest.approx(3000.0)

    def test_convert_rounded(self) -> None:
        assert CurrencyConverter(rate=1500).convert_rounded(0.0003) == 0
        assert CurrencyConverter(rate=3).convert_rounded(0.5) == 2

    @pytest.mark.parametrize("rate", [0, -1500])
    def test_rejects_non_positive_rate(self, rate) -> None:
        with pytest.raises(ValueError):
            CurrencyConverter(rate=rate)

    def test_format_spend(self) -> None:
        assert CurrencyConverter(rate=1500).format_spend(150) == "$150.00 (₩225,000)"

    def test_channel_currency(self) -> None:
        assert channel_currency(Channel.SOCIAL) == "USD"
        assert channel_currency(Channel.LOCAL_SEARCH) == "KRW"


class TestNormalize:
    def test_converts_spend_and_rederives(self) -> None:
        normalized = CurrencyConverter(rate=1500).normalize(
            _social_total(spend=10.0, clicks=5)
        )
        assert normalized.currency == "KRW"
        assert normalized.spend == pytest.approx(15000.0)
        assert normalized.cpc == pytest.approx(3000.0)
        assert normalized.clicks == 5

    def test_target_currency_passes_through(self) -> None:
        agg = _social_total(spend=15000.0, currency="KRW")
        assert CurrencyConverter().normalize(agg) is agg

    def test_unknown_currency_rejected(self) -> None:
        with pytest.raises(ValueError):
            CurrencyConverter().normalize(_social_total(spend=1.0, currency="EUR"))
