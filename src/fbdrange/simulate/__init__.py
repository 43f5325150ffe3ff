"""
Simulation helpers for fbdrange.

- initial_ranges: random starting range values consistent with observed ages
"""

from .ranges import initial_ranges

__all__ = [
    'initial_ranges',
]
