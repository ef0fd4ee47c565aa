"""Services Layer — model session, mutators, change dispatch and the pipeline orchestrator.

Invariants:
    - One handler module per change type
    - Change dispatch uses an explicit dict mapping (no auto-discovery)
"""
