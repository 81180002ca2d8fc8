"""
Bank Ledger - Source Package

A personal bank-account ledger: accounts, deposits, withdrawals,
transfers, savings interest and JSON backups.

DESIGN PRINCIPLES:
1. Money is exact (Decimal, never float)
2. Validate everything before changing anything
3. History is append-only
4. Every change is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Bank Ledger Team"
