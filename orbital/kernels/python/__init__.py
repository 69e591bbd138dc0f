"""
Integer-only Python kernels for the Orbital curve.

Every function is pure and states its rounding direction; pool code in
``orbital.core`` only ever moves reserves through these.
"""
