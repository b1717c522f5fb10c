"""Core Layer — pure ledger arithmetic, intent routing, directive parsing.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, or db/
    - No IO, no async: every function is deterministic over its arguments
"""
