"""Project core.

This package hosts the stable, non-domain-specific building blocks (errors,
outcome types and clocks).
"""

from __future__ import annotations

__all__ = [
    "__version__",
]

__version__ = "0.1.0"
