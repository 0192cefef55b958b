"""Purity-tier rate derivation and unit conversion.

Sources quote a single reference price for the highest purity. Every other
tier moves in lockstep through a fixed multiplier, so a full rate table can
always be rebuilt from the base price alone.

Multipliers (market conventions used by Indian retail quotes):
  - Gold: 999 -> 1, 916 (22K) -> 0.9167, 750 (18K) -> 0.75, 585 (14K) -> 0.5833
  - Silver: 999 -> 1, 925 (sterling) -> 0.925 of 99.9%
  - Platinum: 999 -> 1, 950 -> 0.95 of 99.9%, 900 -> 0.90 of 99.9%
"""

from decimal import Decimal

from bullion.exceptions import InvalidObservation
from bullion.models import MetalKind, MetalRate, Observation, PriceUnit
from bullion.pricing.change import quantize_price

_FINE = Decimal("0.999")

PURITY_MULTIPLIERS: dict[MetalKind, list[tuple[str, Decimal]]] = {
    MetalKind.GOLD: [
        ("999", Decimal("1")),
        ("916", Decimal("0.9167")),
        ("750", Decimal("0.75")),
        ("585", Decimal("0.5833")),
    ],
    MetalKind.SILVER: [
        ("999", Decimal("1")),
        ("925", Decimal("0.925") * _FINE),
    ],
    MetalKind.PLATINUM: [
        ("999", Decimal("1")),
        ("950", Decimal("0.95") * _FINE),
        ("900", Decimal("0.90") * _FINE),
    ],
}

GRAMS_PER_UNIT: dict[PriceUnit, Decimal] = {
    PriceUnit.GRAM: Decimal("1"),
    PriceUnit.TEN_GRAM: Decimal("10"),
    PriceUnit.KILOGRAM: Decimal("1000"),
    PriceUnit.TROY_OUNCE: Decimal("31.1035"),
}


def to_per_gram(price: Decimal, unit: PriceUnit) -> Decimal:
    """Convert a price quoted per `unit` into a price per gram (unrounded)."""
    return price / GRAMS_PER_UNIT[unit]


def derive_rates(metal: MetalKind, base_price: Decimal) -> list[MetalRate]:
    """Build the ordered purity rate table for a metal from its base price.

    Args:
        metal: Metal whose multiplier table applies.
        base_price: Per-gram price of the base (999) purity. Must be positive.

    Returns:
        Rates ordered base-first, each price rounded to 2 decimal places.
        Change fields are zero; the reconciler fills them in.

    Raises:
        InvalidObservation: If base_price is not positive.
    """
    if not base_price.is_finite() or base_price <= 0:
        raise InvalidObservation(f"{metal.value}: base price must be positive, got {base_price}")
    return [
        MetalRate(purity=purity, price=quantize_price(base_price * multiplier))
        for purity, multiplier in PURITY_MULTIPLIERS[metal]
    ]


def validate_observation(observation: Observation) -> Decimal:
    """Return the observed price if usable, else raise InvalidObservation."""
    price = observation.price
    if price is None:
        raise InvalidObservation(f"{observation.metal.value}: no price observed")
    if not isinstance(price, Decimal):
        price = Decimal(str(price))
    if not price.is_finite() or price <= 0:
        raise InvalidObservation(
            f"{observation.metal.value}: invalid price {price} from {observation.source}"
        )
    return price


def rates_from_observation(observation: Observation) -> list[MetalRate]:
    """Validate an observation, convert it to per-gram, and derive the rate table."""
    price = validate_observation(observation)
    return derive_rates(observation.metal, to_per_gram(price, observation.unit))
