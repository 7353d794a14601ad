"""
Household Tracker - Source Package

Tracks recurring household services (milk, water, house cleaning,
gardener), keeps a running bill against configurable rates and
records payments made against those bills.

DESIGN PRINCIPLES:
1. Ledger arithmetic is pure and recomputed from full history
2. Filters change what is shown, never what is owed
3. State changes only after the store confirms a write
4. Every step must be auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Household Tracker Team"
