"""Precious-metal price tables with reconciled daily history."""

__version__ = "0.1.0"
