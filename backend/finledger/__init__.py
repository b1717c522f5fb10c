"""FinLedger Application Package — natural-language financial command interpreter.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)
"""
