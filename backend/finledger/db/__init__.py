"""Database Infrastructure — SQLAlchemy Base shared by the key-value table.

Invariants:
    - All sessions are async (AsyncSession)
"""
