"""Shared data models for metal price records.

CRITICAL: All monetary values use Decimal. Never use float for prices or changes.
Serialized documents carry decimals as strings so that a round trip through the
store, snapshot files, or HTTP responses never loses precision.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any


class MetalKind(str, Enum):
    """Metals with a maintained price record."""

    GOLD = "gold"
    SILVER = "silver"
    PLATINUM = "platinum"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()

    @property
    def symbol_code(self) -> str:
        return _SYMBOL_CODES[self]


_SYMBOL_CODES = {
    MetalKind.GOLD: "Au",
    MetalKind.SILVER: "Ag",
    MetalKind.PLATINUM: "Pt",
}


class PriceUnit(str, Enum):
    """Weight unit an observed price is quoted in."""

    GRAM = "gram"
    TEN_GRAM = "10g"
    KILOGRAM = "kg"
    TROY_OUNCE = "troy_oz"


CHART_WINDOWS = ("1Y", "3Y", "5Y", "10Y", "ALL")


def _dec(value: Any) -> Decimal:
    """Parse a stored value into Decimal via str() to avoid float artifacts."""
    return Decimal(str(value))


@dataclass
class Observation:
    """A single raw price observation from a source, before unit conversion."""

    metal: MetalKind
    price: Decimal | None
    unit: PriceUnit = PriceUnit.GRAM
    source: str = "manual"


@dataclass
class MetalRate:
    """Price of one purity tier, with its change against the previous period."""

    purity: str
    price: Decimal
    change: Decimal = Decimal("0")
    change_percent: Decimal = Decimal("0")

    def to_dict(self) -> dict[str, str]:
        return {
            "purity": self.purity,
            "price": str(self.price),
            "change": str(self.change),
            "changePercent": str(self.change_percent),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MetalRate":
        return cls(
            purity=str(data["purity"]),
            price=_dec(data["price"]),
            change=_dec(data.get("change", 0)),
            change_percent=_dec(data.get("changePercent", 0)),
        )


@dataclass
class HistoryEntry:
    """Base-purity reference price observed on a calendar day."""

    date: date
    price: Decimal
    change: Decimal = Decimal("0")

    def to_dict(self) -> dict[str, str]:
        return {
            "date": self.date.isoformat(),
            "price": str(self.price),
            "change": str(self.change),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "HistoryEntry":
        return cls(
            date=date.fromisoformat(str(data["date"])),
            price=_dec(data["price"]),
            change=_dec(data.get("change", 0)),
        )


@dataclass
class ChartPoint:
    """One point of a chart series."""

    date: date
    price: Decimal

    def to_dict(self) -> dict[str, str]:
        return {"date": self.date.isoformat(), "price": str(self.price)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ChartPoint":
        return cls(date=date.fromisoformat(str(data["date"])), price=_dec(data["price"]))


@dataclass
class MetalRecord:
    """Everything persisted for one metal.

    history is stored newest-first. chart_series is derived from history and
    must only be rebuilt, never edited.
    """

    name: str
    symbol_code: str
    last_updated: datetime
    rates: list[MetalRate] = field(default_factory=list)
    history: list[HistoryEntry] = field(default_factory=list)
    chart_series: dict[str, list[ChartPoint]] = field(default_factory=dict)

    @property
    def latest_entry(self) -> HistoryEntry | None:
        return self.history[0] if self.history else None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "symbolCode": self.symbol_code,
            "lastUpdated": self.last_updated.isoformat(),
            "rates": [r.to_dict() for r in self.rates],
            "history": [h.to_dict() for h in self.history],
            "chartSeries": {
                window: [p.to_dict() for p in self.chart_series.get(window, [])]
                for window in CHART_WINDOWS
            },
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MetalRecord":
        series = data.get("chartSeries") or {}
        return cls(
            name=data["name"],
            symbol_code=data["symbolCode"],
            last_updated=datetime.fromisoformat(data["lastUpdated"]),
            rates=[MetalRate.from_dict(r) for r in data.get("rates") or []],
            history=[HistoryEntry.from_dict(h) for h in data.get("history") or []],
            chart_series={
                window: [ChartPoint.from_dict(p) for p in series.get(window) or []]
                for window in CHART_WINDOWS
            },
        )
