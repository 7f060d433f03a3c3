"""DepRadar: vulnerability lookups for npm dependencies.

This package provides the core logic for querying OSV for known
vulnerabilities, classifying and ranking them, and summarizing the
results per package.
"""

__version__ = "0.1.0"
