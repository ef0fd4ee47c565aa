"""AppWizard Export Package — applies declarative changes to a model working copy and exports it.

Invariants:
    - Package root contains no executable code beyond the version constant
"""

__version__ = "1.0.0"
