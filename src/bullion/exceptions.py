"""Custom exceptions for the bullion price service.

Store, source, and validation errors live here to avoid circular imports
between the pricing, store, and sources packages.
"""


class BullionError(Exception):
    """Base exception for all bullion errors."""


class InvalidObservation(BullionError):
    """Raised when a price observation is missing, non-finite, or non-positive."""


class ObservationUnavailable(BullionError):
    """Raised when an observation source cannot produce a price for a metal."""


class StoreReadFailure(BullionError):
    """Raised when the primary record store cannot be read."""


class StoreWriteFailure(BullionError):
    """Raised when the primary record store cannot be written."""


class SecondaryWriteFailure(BullionError):
    """Raised when a snapshot file cannot be written.

    Never escapes the snapshot writer: callers only see it in logs.
    """


class InvalidConfiguration(BullionError):
    """Raised when an operator configuration update carries no usable values."""
