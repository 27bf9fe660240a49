"""
Sales Document Kernel

Numbering and lifecycle core for quotations and contracts:
- Fiscal-year scoped, gap-tolerant sequence counters
- Single-mint approval with collision re-check
- Revision chains of document numbers
- Explicit two-phase cascade deletion of dependent records
"""

__version__ = "0.1.0"
