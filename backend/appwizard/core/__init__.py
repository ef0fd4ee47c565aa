"""Core Layer — pure domain logic and boundary contracts, no IO.

Invariants:
    - No module in core/ imports from services/, api/, schemas/ or infrastructure/
    - Text transform, validation and result types are pure and deterministic
"""
