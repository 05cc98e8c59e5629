"""
Church Ledger Kernel

Financial-year lifecycle for the church finance application:
- Dec 1 -> Nov 30 financial-year windows
- Exactly one current year, changed atomically
- Confirmation-gated reset of a year's records
- Rollback of individual CSV import batches
"""

__version__ = "0.1.0"
