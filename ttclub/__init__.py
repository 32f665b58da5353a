"""Rank progression and movement analysis core for table tennis club training."""

__version__ = "0.3.0"
