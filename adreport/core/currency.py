"""ADREPORT: Currency Converter.

Fixed-rate conversion between the social channel's currency (USD) and the
reporting currency (KRW). The rate is a configured constant, not a market rate.
"""

from decimal import Decimal, ROUND_HALF_UP

from adreport.config import settings
from adreport.core.metric_registry import Channel
from adreport.models.analysis_models import Aggregate
from adreport.analyzer.kpi_engine import derive_kpis


def channel_currency(channel: Channel) -> str:
    """Native currency of a channel's spend figures."""
    if channel == Channel.SOCIAL:
        return settings.social_currency
    return settings.base_currency


def round_half_up(value: float, digits: int = 0) -> float:
    """Round half away from zero, as currency amounts are displayed."""
    quantum = Decimal(1).scaleb(-digits)
    rounded = Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP)
    return float(rounded)


class CurrencyConverter:
    """Converts amounts between the social currency and the base currency."""

    def __init__(
        self,
        rate: float | None = None,
        source_currency: str | None = None,
        target_currency: str | None = None,
    ):
        self.rate = rate if rate is not None else settings.usd_to_krw_rate
        self.source_currency = source_currency or settings.social_currency
        self.target_currency = target_currency or settings.base_currency
        if self.rate <= 0:
            raise ValueError(f"Exchange rate must be positive, got {self.rate}")

    def convert(self, amount: float) -> float:
        """Convert an amount; unrounded so sums stay exact downstream."""
        return amount * self.rate

    def convert_rounded(self, amount: float) -> int:
        """Convert and round to a whole unit of the target currency."""
        return int(round_half_up(amount * self.rate))

    def normalize(self, aggregate: Aggregate) -> Aggregate:
        """Return a copy of an aggregate with spend in the target currency.

        Aggregates already in the target currency are returned unchanged.
        KPIs are re-derived from the converted spend.
        """
        if aggregate.currency == self.target_currency:
            return aggregate
        if aggregate.currency != self.source_currency:
            raise ValueError(
                f"Cannot convert {aggregate.currency} with a "
                f"{self.source_currency}->{self.target_currency} rate"
            )
        converted = aggregate.model_copy(
            update={
                "spend": self.convert(aggregate.spend),
                "currency": self.target_currency,
            }
        )
        return derive_kpis(converted)

    def format_spend(self, amount: float) -> str:
        """e.g. "$150.00 (₩225,000)"."""
        return f"${amount:,.2f} (₩{self.convert_rounded(amount):,})"
