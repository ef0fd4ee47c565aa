"""Infrastructure Layer — platform and blob-store clients, logging setup.

Invariants:
    - All external calls wrapped with timeout and error mapping
    - Infrastructure never imports from services/
"""
