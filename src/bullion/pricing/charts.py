"""Fixed look-back chart series derived from price history."""

from datetime import date

from bullion.models import ChartPoint, HistoryEntry

WINDOW_YEARS: dict[str, int | None] = {
    "1Y": 1,
    "3Y": 3,
    "5Y": 5,
    "10Y": 10,
    "ALL": None,
}


def years_before(day: date, years: int) -> date:
    """Same calendar day `years` earlier; Feb 29 falls back to Feb 28."""
    try:
        return day.replace(year=day.year - years)
    except ValueError:
        return day.replace(year=day.year - years, day=28)


def build_chart_series(history: list[HistoryEntry], today: date) -> dict[str, list[ChartPoint]]:
    """Slice history into chart windows.

    A window of N years keeps entries dated on or after today minus N years.
    Each series is sorted ascending by date. Input order does not matter.
    """
    ordered = sorted(history, key=lambda h: h.date)
    series: dict[str, list[ChartPoint]] = {}
    for window, years in WINDOW_YEARS.items():
        cutoff = years_before(today, years) if years is not None else None
        series[window] = [
            ChartPoint(date=entry.date, price=entry.price)
            for entry in ordered
            if cutoff is None or entry.date >= cutoff
        ]
    return series
