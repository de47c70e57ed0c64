"""
Zenith Ledger - Source Package

A personal finance ledger for people who track their own money:
cash accounts, credit cards, investments and savings goals.

DESIGN PRINCIPLES:
1. Money is always integer cents
2. Balances are derived from the transaction log, never typed in
3. Every mutation returns a new snapshot; nothing is edited in place
4. Degrade gracefully - the ledger must always stay renderable
5. Storage and collaborators are swappable
"""

__version__ = "1.3.1"
__author__ = "Zenith Team"
