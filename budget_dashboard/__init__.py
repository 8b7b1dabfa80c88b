"""
Budget Dashboard - Source Package

A family budget dashboard backed by a Supabase (Postgres) ledger,
with per-category monthly totals mirrored into a Google Sheet.

DESIGN PRINCIPLES:
1. The database is the source of truth
2. The spreadsheet is a best-effort mirror, rewritten from the database
3. Missing spreadsheet credentials never block a ledger write
4. Every write is logged
"""

__version__ = "1.0.0"
__author__ = "Budget Dashboard Team"
