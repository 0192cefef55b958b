"""Price derivation and history reconciliation.

Pure helpers (purity rates, change calculation, chart windows) plus the
HistoryReconciler that applies them to stored metal records.
"""

from bullion.pricing.change import calculate_change, quantize_price
from bullion.pricing.charts import build_chart_series
from bullion.pricing.purity import (
    PURITY_MULTIPLIERS,
    derive_rates,
    rates_from_observation,
    to_per_gram,
)
from bullion.pricing.reconciler import HistoryReconciler

__all__ = [
    "PURITY_MULTIPLIERS",
    "HistoryReconciler",
    "build_chart_series",
    "calculate_change",
    "derive_rates",
    "quantize_price",
    "rates_from_observation",
    "to_per_gram",
]
