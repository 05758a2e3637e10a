"""
FinanceAI - Source Package

Local persistence and monthly aggregation for a personal budgeting app.
Transactions are classified into spending tiers (needs, wants, not
important), savings goals are tracked, and everything lives in one JSON
aggregate held in a key-value store with a one-generation backup.

DESIGN PRINCIPLES:
1. One aggregate, rewritten whole on every mutation
2. Derived numbers are recomputed, never stored
3. Reads never fail - fall back to backup, then to an empty aggregate
4. Writes report what happened instead of raising
5. Storage backend is swappable
"""

__version__ = "1.0.0"
__author__ = "FinanceAI Team"
