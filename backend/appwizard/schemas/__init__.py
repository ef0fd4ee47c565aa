"""Pydantic Schemas — request/response validation at the system boundary.

Invariants:
    - Schemas accept the wire field names as aliases
    - Domain enums from core/ are derived from raw fields, never rejected at parse time
"""
