"""Ledgers over the entity store.

Ledger functions add and flush rows but never commit; the caller owns the
transaction so a state change and its activity record land together.
"""
