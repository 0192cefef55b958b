"""Observation sources -- interchangeable price scrapers and API clients."""

from bullion.sources.api_ninjas import ApiNinjasSource
from bullion.sources.base import HttpObservationSource, ObservationSource
from bullion.sources.fivepaisa import FivePaisaSource
from bullion.sources.mcx import McxSource

__all__ = [
    "ApiNinjasSource",
    "FivePaisaSource",
    "HttpObservationSource",
    "McxSource",
    "ObservationSource",
]
