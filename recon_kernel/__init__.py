"""
Reconciliation Kernel

Status lifecycle enforcement for the reconciliation pipeline:
- One declarative table of legal transitions per entity kind
- Validation before any write
- Conditional (compare-and-set) status writes
- One append-only audit entry per applied transition
"""

__version__ = "0.1.0"
