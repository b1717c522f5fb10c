"""Services Layer — ledger store, conversation memory, retrieval, orchestration.

Invariants:
    - Action dispatch uses an explicit dict mapping (no auto-discovery)
    - Collaborators (store, memory, retriever, inference) are injected, never global
"""
