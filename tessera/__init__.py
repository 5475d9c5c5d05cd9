"""
Tessera - placement annotations for a heterogeneous tensor compiler IR.
"""

__version__ = "0.1.0"
