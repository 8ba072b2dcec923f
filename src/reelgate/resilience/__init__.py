"""Resilience policies for vendor calls."""

from reelgate.resilience.transient import (
    DEFAULT_CLASSIFIER,
    TransientErrorClassifier,
    VendorEnvelopeError,
)

__all__ = ["DEFAULT_CLASSIFIER", "TransientErrorClassifier", "VendorEnvelopeError"]
