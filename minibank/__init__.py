"""
Minibank

A small multi-currency bank ledger with savings interest capitalization,
invariant-checked transfers and withdrawals, and Decimal money arithmetic.
"""

__version__ = "1.0.0"
