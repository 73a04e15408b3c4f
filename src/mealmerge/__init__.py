"""
Mealmerge identity merge gateway package.

The package moves data created under an anonymous guest identity onto a freshly
authenticated account, guarded by rate limiting, authentication and staleness checks.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
